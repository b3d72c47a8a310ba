"""
Paper Trading

Simulated capital and positions per user. Trades are priced with live
market data but never sent to an exchange.
"""

from .errors import (
    TradeErrorKind,
    TradingError,
    InvalidSymbolError,
    InvalidAmountError,
    InsufficientCapitalError,
    InsufficientQuantityError,
    PositionNotFoundError,
    PriceUnavailableError,
)
from .pricing import (
    PriceSource,
    RetryingPriceSource,
    fetch_price,
    get_price_with_retries,
)
from .ledger import (
    Ledger,
    Position,
    PositionValuation,
    BalanceSnapshot,
    GridAction,
    GridResult,
)

__all__ = [
    "TradeErrorKind",
    "TradingError",
    "InvalidSymbolError",
    "InvalidAmountError",
    "InsufficientCapitalError",
    "InsufficientQuantityError",
    "PositionNotFoundError",
    "PriceUnavailableError",
    "PriceSource",
    "RetryingPriceSource",
    "fetch_price",
    "get_price_with_retries",
    "Ledger",
    "Position",
    "PositionValuation",
    "BalanceSnapshot",
    "GridAction",
    "GridResult",
]
