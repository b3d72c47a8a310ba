"""Utility functions and helpers"""

from .logger import setup_logger
from .helpers import (
    SUPPORTED_SYMBOLS,
    format_currency,
    normalize_symbol,
    parse_amount,
    parse_price,
    validate_symbol,
)

__all__ = [
    "setup_logger",
    "SUPPORTED_SYMBOLS",
    "format_currency",
    "normalize_symbol",
    "parse_amount",
    "parse_price",
    "validate_symbol",
]
