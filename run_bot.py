#!/usr/bin/env python3
"""
TradeSim Bot Runner - Entry point for the Telegram bot

Loads .env from the project root so the bot can be started from any
working directory, then logs to logs/ unless LOG_FILE says otherwise.
"""

import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent

# Must happen before settings are first read
load_dotenv(PROJECT_ROOT / ".env")

from loguru import logger  # noqa: E402

from tradesim_bot.main import (  # noqa: E402
    configure_logging,
    run_bot,
    validate_startup_requirements,
)


def main():
    """Main entry point"""
    daily_log = PROJECT_ROOT / "logs" / f"bot_{datetime.now():%Y%m%d}.log"
    configure_logging(default_log_file=str(daily_log))

    logger.info(f"Starting TradeSim Bot from {PROJECT_ROOT}")

    valid, _ = validate_startup_requirements()
    if not valid:
        sys.exit(1)

    try:
        run_bot()
    except Exception as e:
        logger.exception(f"Bot crashed: {e}")
        sys.exit(1)

    logger.info("Bot shutdown complete")


if __name__ == "__main__":
    main()
