"""
Trading error taxonomy

Every failure a user can run into while trading maps to one
TradeErrorKind. The chat layer turns kinds into text; nothing
below it formats messages for users.
"""

from enum import Enum


class TradeErrorKind(Enum):
    """Kinds of trading errors"""
    INVALID_SYMBOL = "INVALID_SYMBOL"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INSUFFICIENT_CAPITAL = "INSUFFICIENT_CAPITAL"
    INSUFFICIENT_QUANTITY = "INSUFFICIENT_QUANTITY"
    POSITION_NOT_FOUND = "POSITION_NOT_FOUND"
    PRICE_UNAVAILABLE = "PRICE_UNAVAILABLE"


class TradingError(Exception):
    """Base class for all trading errors"""

    kind: TradeErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class InvalidSymbolError(TradingError):
    kind = TradeErrorKind.INVALID_SYMBOL


class InvalidAmountError(TradingError):
    kind = TradeErrorKind.INVALID_AMOUNT


class InsufficientCapitalError(TradingError):
    kind = TradeErrorKind.INSUFFICIENT_CAPITAL

    def __init__(self, amount: float, capital: float):
        super().__init__(f"amount {amount:.2f} exceeds capital {capital:.2f}")
        self.amount = amount
        self.capital = capital


class InsufficientQuantityError(TradingError):
    kind = TradeErrorKind.INSUFFICIENT_QUANTITY

    def __init__(self, symbol: str, amount: float, held: float):
        super().__init__(f"cannot sell {amount:.2f} {symbol}, holding {held:.2f}")
        self.symbol = symbol
        self.amount = amount
        self.held = held


class PositionNotFoundError(TradingError):
    kind = TradeErrorKind.POSITION_NOT_FOUND

    def __init__(self, symbol: str):
        super().__init__(f"no open position in {symbol}")
        self.symbol = symbol


class PriceUnavailableError(TradingError):
    kind = TradeErrorKind.PRICE_UNAVAILABLE
