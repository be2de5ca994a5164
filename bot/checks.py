"""Permission checks for slash commands."""
from __future__ import annotations

import discord
from discord import app_commands


def _can_manage_guild(interaction: discord.Interaction) -> bool:
    """True if the invoking member is a server admin or has Manage Server. Always False in DMs."""
    if not interaction.guild:
        return False
    member = interaction.user
    if not isinstance(member, discord.Member):
        return False
    perms = member.guild_permissions
    return perms.administrator or perms.manage_guild


def manage_guild_only():
    """Require Manage Server. Checked on every call; a guild can override the command's default permissions."""

    async def predicate(interaction: discord.Interaction) -> bool:
        return _can_manage_guild(interaction)

    return app_commands.check(predicate)
