"""Serve the stats API with uvicorn. Run from project root: python web/run_api.py [--reload]"""
import sys
from pathlib import Path

# Project root on the path so `bot` and `config` resolve when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import uvicorn

import config
from bot.log import setup_logging

if __name__ == "__main__":
    setup_logging(config.LOG_LEVEL)
    uvicorn.run(
        "web.api.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload="--reload" in sys.argv,
        log_config=None,
    )
