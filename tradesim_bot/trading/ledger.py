"""
Paper Trading Ledger

Tracks simulated capital and open positions for one user.
Nothing here talks to the exchange except the grid strategy,
which quotes the current price through a PriceSource.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from loguru import logger

from .errors import (
    InsufficientCapitalError,
    InsufficientQuantityError,
    InvalidAmountError,
    PositionNotFoundError,
    PriceUnavailableError,
)
from .pricing import PriceSource, fetch_price


@dataclass
class Position:
    """
    One purchase lot of a single symbol

    Every buy opens its own lot at the purchase price. A lot only
    exists while amount > 0; the ledger drops it once it has been
    sold down to exactly zero.
    """
    symbol: str
    amount: float
    entry_price: float


@dataclass
class PositionValuation:
    """A lot priced for display"""
    symbol: str
    amount: float
    entry_price: float
    price: Optional[float] = None
    error: Optional[str] = None

    @property
    def value(self) -> float:
        """Current value, 0 when the price could not be fetched"""
        if self.price is None:
            return 0.0
        return self.amount * self.price


@dataclass
class BalanceSnapshot:
    """Capital plus valued lots at a point in time"""
    capital: float
    positions: List[PositionValuation] = field(default_factory=list)

    @property
    def positions_value(self) -> float:
        return sum(p.value for p in self.positions)

    @property
    def total_value(self) -> float:
        return self.capital + self.positions_value


class GridAction(Enum):
    """What a grid strategy evaluation did"""
    BOUGHT = "BOUGHT"
    SOLD = "SOLD"
    NO_ACTION = "NO_ACTION"


@dataclass
class GridResult:
    """Outcome of one grid strategy evaluation"""
    action: GridAction
    symbol: str
    price: float
    amount: float = 0.0
    profit: float = 0.0


class Ledger:
    """
    Simulated account for a single user

    Tracks:
    - Available capital (USDT)
    - Open lots per symbol, oldest first
    """

    def __init__(self, starting_capital: float = 100.0):
        """
        Initialize ledger

        Args:
            starting_capital: Initial simulated capital
        """
        self.starting_capital = starting_capital
        self.capital = starting_capital
        self.positions: Dict[str, List[Position]] = {}

    def get_capital(self) -> float:
        """Current available capital"""
        return self.capital

    def get_position(self, symbol: str) -> Optional[Position]:
        """Oldest open lot for a symbol, the one a sell draws from"""
        lots = self.positions.get(symbol)
        return lots[0] if lots else None

    def get_lots(self, symbol: str) -> List[Position]:
        """All open lots for a symbol in purchase order"""
        return list(self.positions.get(symbol, []))

    def buy_token(self, symbol: str, amount: float, price: float) -> None:
        """
        Buy a token at the given price

        Args:
            symbol: Symbol to buy
            amount: Amount to buy, debited from capital as-is
            price: Purchase price, recorded as the new lot's entry price

        Raises:
            InvalidAmountError: If amount or price is not positive
            InsufficientCapitalError: If amount exceeds available capital
        """
        if amount <= 0 or price <= 0:
            raise InvalidAmountError(f"amount and price must be positive (got {amount}, {price})")
        if amount > self.capital:
            raise InsufficientCapitalError(amount, self.capital)

        self.positions.setdefault(symbol, []).append(
            Position(symbol=symbol, amount=amount, entry_price=price)
        )
        self.capital -= amount

        logger.info(
            f"Bought {amount:.4f} {symbol} @ ${price:,.4f} "
            f"(capital left: ${self.capital:,.2f})"
        )

    def sell_token(self, symbol: str, amount: float, current_price: float) -> float:
        """
        Sell part or all of the oldest lot of a symbol

        Args:
            symbol: Symbol to sell
            amount: Amount to sell
            current_price: Current market price

        Returns:
            Proceeds credited to capital: amount * (current_price / entry_price)

        Raises:
            PositionNotFoundError: If no lot exists for the symbol
            InsufficientQuantityError: If amount exceeds the oldest lot's amount
        """
        lot = self.get_position(symbol)
        if lot is None:
            raise PositionNotFoundError(symbol)
        if amount <= 0 or current_price <= 0:
            raise InvalidAmountError(f"amount and price must be positive (got {amount}, {current_price})")
        if amount > lot.amount:
            raise InsufficientQuantityError(symbol, amount, lot.amount)

        profit = amount * (current_price / lot.entry_price)

        self.capital += profit
        lot.amount -= amount

        if lot.amount == 0:
            lots = self.positions[symbol]
            lots.pop(0)
            if not lots:
                del self.positions[symbol]
            logger.info(f"Lot {symbol} @ ${lot.entry_price:,.4f} fully closed")

        logger.info(
            f"Sold {amount:.4f} {symbol} @ ${current_price:,.4f} "
            f"for ${profit:,.2f} (capital: ${self.capital:,.2f})"
        )

        return profit

    def get_balance(
        self,
        price_lookup: Optional[Callable[[str], float]] = None,
    ) -> BalanceSnapshot:
        """
        Value capital and every open lot

        Args:
            price_lookup: Returns the live price for a symbol, called once per
                symbol. Lots are valued at their entry price when omitted. A
                lookup raising PriceUnavailableError marks that symbol's lots
                as failed and leaves them out of the total.

        Returns:
            BalanceSnapshot
        """
        snapshot = BalanceSnapshot(capital=self.capital)

        for symbol, lots in self.positions.items():
            price: Optional[float] = None
            error: Optional[str] = None
            if price_lookup is not None:
                try:
                    price = price_lookup(symbol)
                except PriceUnavailableError as e:
                    logger.warning(f"Could not value {symbol}: {e.message}")
                    error = e.message

            for lot in lots:
                snapshot.positions.append(PositionValuation(
                    symbol=symbol,
                    amount=lot.amount,
                    entry_price=lot.entry_price,
                    price=lot.entry_price if price_lookup is None else price,
                    error=error,
                ))

        return snapshot

    def execute_grid_strategy(
        self,
        symbol: str,
        drop_percent: float,
        rise_percent: float,
        amount: float,
        price_source: PriceSource,
    ) -> GridResult:
        """
        Evaluate the grid rule once against the current price

        Lots are checked oldest first. Buys `amount` when the price has
        fallen drop_percent below any lot's entry price, otherwise sells
        `amount` when it has risen rise_percent above any lot's entry price.

        Raises:
            PriceUnavailableError: If the price could not be fetched
            TradingError: Any error from the resulting buy or sell
        """
        price = fetch_price(price_source, symbol)
        lots = self.get_lots(symbol)

        if not lots:
            logger.info(f"Grid {symbol}: no open position, nothing to do")
            return GridResult(action=GridAction.NO_ACTION, symbol=symbol, price=price)

        for lot in lots:
            if price <= lot.entry_price * (1 - drop_percent / 100):
                logger.debug(f"Grid {symbol}: {price:.4f} below lot @ {lot.entry_price:.4f}")
                self.buy_token(symbol, amount, price)
                return GridResult(action=GridAction.BOUGHT, symbol=symbol, price=price, amount=amount)

        for lot in lots:
            if price >= lot.entry_price * (1 + rise_percent / 100):
                logger.debug(f"Grid {symbol}: {price:.4f} above lot @ {lot.entry_price:.4f}")
                profit = self.sell_token(symbol, amount, price)
                return GridResult(
                    action=GridAction.SOLD, symbol=symbol, price=price, amount=amount, profit=profit
                )

        return GridResult(action=GridAction.NO_ACTION, symbol=symbol, price=price)

    def reset(self) -> None:
        """Reset ledger to initial state"""
        self.capital = self.starting_capital
        self.positions.clear()

        logger.info("Ledger reset")

    def __repr__(self) -> str:
        open_lots = sum(len(lots) for lots in self.positions.values())
        return f"Ledger(capital={self.capital:.2f}, lots={open_lots})"
