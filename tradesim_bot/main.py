#!/usr/bin/env python3
"""
TradeSim Bot - Paper trading simulator for Telegram

Main entry point for the bot.
"""

import argparse
import sys
from typing import List, Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from .utils.logger import setup_logger


def configure_logging(
    verbose: bool = False,
    log_file: Optional[str] = None,
    default_log_file: Optional[str] = None,
) -> None:
    """
    Set up logging from LOG_LEVEL / LOG_FILE

    Args:
        verbose: Force DEBUG regardless of LOG_LEVEL
        log_file: Overrides LOG_FILE
        default_log_file: Used when neither log_file nor LOG_FILE is set
    """
    from .config.settings import get_settings

    try:
        settings = get_settings()
        level, settings_file = settings.log_level, settings.log_file
    except ValidationError:
        # Reported by validate_startup_requirements once logging is up
        level, settings_file = "INFO", None

    setup_logger(
        log_file=log_file or settings_file or default_log_file,
        log_level="DEBUG" if verbose else level,
    )


def validate_startup_requirements() -> Tuple[bool, List[str]]:
    """
    Validate all requirements before starting the bot.

    Returns:
        Tuple of (success, list of error messages)
    """
    errors: List[str] = []

    try:
        from .config.settings import get_settings
        settings = get_settings()
    except Exception as e:
        errors.append(f"Failed to load settings: {e}")
        return False, errors

    if ":" not in settings.telegram_bot_token:
        errors.append("TELEGRAM_BOT_TOKEN format looks invalid (expected '<id>:<secret>')")

    if settings.admin_only and settings.admin_id is None:
        errors.append("ADMIN_ONLY is enabled but ADMIN_ID is not set")

    if settings.admin_id is None:
        logger.warning("⚠️  ADMIN_ID not set - /reset will be unavailable")

    for error in errors:
        logger.error(f"❌ {error}")

    return len(errors) == 0, errors


def run_bot() -> None:
    """Start polling Telegram and answering messages"""
    from .api.okx_client import OKXClient
    from .bot.channel import TelegramChannel
    from .bot.conversation import ConversationEngine
    from .bot.runner import BotRunner
    from .config.settings import get_settings

    settings = get_settings()

    logger.info("=" * 60)
    logger.info("TRADESIM BOT - Paper Trading Simulator")
    logger.info("=" * 60)
    logger.info(f"Starting Capital: ${settings.starting_capital:,.2f}")
    logger.info(f"Price Retries: {settings.price_max_retries} x {settings.price_retry_delay:.0f}s")
    logger.info(
        f"Grid Thresholds: -{settings.grid_drop_percent}% / +{settings.grid_rise_percent}%"
    )
    logger.info(f"Admin Only: {settings.admin_only}")
    logger.info("=" * 60)

    with OKXClient(settings) as client:
        channel = TelegramChannel(settings)
        engine = ConversationEngine(client, settings=settings)
        runner = BotRunner(channel, engine)

        try:
            runner.run()
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            channel.close()


def show_price(symbol: str) -> int:
    """Print the current price of one symbol"""
    from .api.okx_client import OKXClient
    from .config.settings import get_settings
    from .trading.errors import PriceUnavailableError
    from .trading.pricing import get_price_with_retries
    from .utils.helpers import normalize_symbol

    settings = get_settings()
    symbol = normalize_symbol(symbol)

    with OKXClient(settings) as client:
        try:
            price = get_price_with_retries(
                client,
                symbol,
                max_retries=settings.price_max_retries,
                retry_delay=settings.price_retry_delay,
            )
        except PriceUnavailableError as e:
            logger.error(f"Failed to get price for {symbol}: {e.message}")
            return 1

    print(f"{symbol}: {price}")
    return 0


def show_assets() -> int:
    """Print the popular asset list"""
    from .api.okx_client import get_assets

    for asset in get_assets():
        print(asset)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="TradeSim Bot - Paper trading simulator for Telegram"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging (overrides LOG_LEVEL)"
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Log file path (overrides LOG_FILE)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("run", help="Start the Telegram bot")

    price_parser = subparsers.add_parser("price", help="Fetch the current price of an asset")
    price_parser.add_argument("symbol", help="Asset symbol, e.g. BTC-USDT")

    subparsers.add_parser("assets", help="List popular assets")

    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose, log_file=args.log_file)

    if args.command == "run":
        logger.info("Validating startup requirements...")
        valid, errors = validate_startup_requirements()
        if not valid:
            logger.error("STARTUP VALIDATION FAILED")
            return 1
        logger.success("✓ All startup requirements validated")
        run_bot()
        return 0

    if args.command == "price":
        return show_price(args.symbol)

    if args.command == "assets":
        return show_assets()

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
