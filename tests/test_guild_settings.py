"""Tests for the per-guild log channel setting."""
import pytest

from bot.services.guild_settings import get_log_channel_id, set_log_channel


@pytest.mark.asyncio
async def test_log_channel_unset(session_factory):
    assert await get_log_channel_id(10, session_factory) is None
    assert await get_log_channel_id(None, session_factory) is None


@pytest.mark.asyncio
async def test_set_log_channel_replaces_previous(session_factory):
    """Running /setup logs again overwrites the channel."""
    await set_log_channel(10, 111, session_factory)
    await set_log_channel(10, 222, session_factory)
    await set_log_channel(20, 333, session_factory)

    assert await get_log_channel_id(10, session_factory) == 222
    assert await get_log_channel_id(20, session_factory) == 333
