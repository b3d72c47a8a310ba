"""
Helper functions and utilities
"""

import math
from typing import Optional


# Symbols accepted by the price, buy, sell and grid flows
SUPPORTED_SYMBOLS = (
    "BTC-USDT", "ETH-USDT", "XRP-USDT", "TON-USDT", "LTC-USDT",
    "BCH-USDT", "ADA-USDT", "DOT-USDT", "SOL-USDT", "DOGE-USDT",
)


def format_currency(amount, decimals: int = 2) -> str:
    """
    Format amount as currency

    Args:
        amount: Dollar amount (can be float, int, or string)
        decimals: Number of decimal places

    Returns:
        Formatted currency string

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
    """
    try:
        amount = float(amount) if amount else 0.0
    except (ValueError, TypeError):
        amount = 0.0
    return f"${amount:,.{decimals}f}"


def normalize_symbol(text: str) -> str:
    """
    Normalize user input into ticker form

    Example:
        >>> normalize_symbol(' btc-usdt ')
        'BTC-USDT'
    """
    return text.strip().upper()


def validate_symbol(symbol: str) -> bool:
    """
    Check that a symbol is one of the supported trading pairs

    Args:
        symbol: Trading symbol (already normalized)

    Returns:
        True if the symbol can be traded
    """
    return symbol in SUPPORTED_SYMBOLS


def parse_amount(text: str) -> Optional[float]:
    """
    Parse a positive decimal amount typed by a user

    Accepts a comma as decimal separator. Returns None for anything that is
    not a finite number greater than zero.

    Example:
        >>> parse_amount('12,5')
        12.5
        >>> parse_amount('-3') is None
        True
    """
    try:
        amount = float(text.strip().replace(",", "."))
    except (ValueError, AttributeError):
        return None

    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def parse_price(raw: str) -> float:
    """
    Convert a price string returned by the exchange into a float

    Raises:
        ValueError: If the value is not a positive finite number
    """
    price = float(raw)
    if not math.isfinite(price) or price <= 0:
        raise ValueError(f"Invalid price value: {raw!r}")
    return price
