"""
Conversation Engine

Turns chat messages into trading actions. Each message is classified
against the sender's current conversation state:

- Commands are recognised in any state and replace an unfinished flow
- While a symbol is expected, text is checked against the whitelist
- While an amount is expected, text must be a positive number

Invalid input re-prompts without changing state; any other outcome
of an amount step ends the flow.
"""

import time
from typing import Callable, Dict, List, Optional

from loguru import logger

from ..api.okx_client import get_assets
from ..config.settings import Settings, get_settings
from ..trading.errors import (
    InsufficientCapitalError,
    InvalidAmountError,
    InvalidSymbolError,
    PositionNotFoundError,
    TradingError,
)
from ..trading.pricing import PriceSource, RetryingPriceSource, fetch_price
from ..utils.helpers import normalize_symbol, parse_amount, validate_symbol
from . import messages
from .models import IncomingMessage, OutgoingMessage
from .state import IDLE, AwaitingAmount, AwaitingSymbol, Purpose, Session, SessionStore


Replies = List[OutgoingMessage]

_AMOUNT_VERBS = {
    Purpose.BUY: "buy",
    Purpose.SELL: "sell",
    Purpose.GRID: "trade with the grid strategy",
}


def _reply(text: str, keyboard=None) -> Replies:
    return [OutgoingMessage(text=text, keyboard=keyboard)]


class ConversationEngine:
    """
    Per-user state machine driving the paper trading ledger

    Attributes:
        sessions: Session store holding every user's ledger and state
        price_source: Source used for single-shot quotes (balance listings)
        retrying_source: Same source wrapped with the rate-limit retry policy
    """

    def __init__(
        self,
        price_source: PriceSource,
        sessions: Optional[SessionStore] = None,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the engine

        Args:
            price_source: Market data source (e.g. OKXClient)
            sessions: Session store (created from settings if not provided)
            settings: Application settings (uses default if not provided)
            sleep: Sleep function used between rate-limited retries
        """
        self.settings = settings or get_settings()
        self.sessions = sessions or SessionStore(self.settings.starting_capital)
        self.price_source = price_source
        self.retrying_source = RetryingPriceSource(
            price_source,
            max_retries=self.settings.price_max_retries,
            retry_delay=self.settings.price_retry_delay,
            sleep=sleep,
        )

        self._commands: Dict[str, Callable[[Session, IncomingMessage], Replies]] = {
            "/start": self._cmd_start,
            "/trade": self._cmd_trade,
            "/assets": self._cmd_assets,
            "/help": self._cmd_help,
            "/balance": self._cmd_balance,
            "/price": self._cmd_price,
            "/buy": self._cmd_buy,
            "/sell": self._cmd_sell,
            "/grid_strategy": self._cmd_grid_strategy,
            "/reset": self._cmd_reset,
        }

    def handle_message(self, message: IncomingMessage) -> Replies:
        """
        Process one inbound message and return the replies to send

        The sender's session lock is held for the whole message, so
        messages from one user are never processed concurrently.
        """
        if self.settings.admin_only and not self.settings.is_admin(message.user_id):
            logger.warning(f"Ignoring message from non-admin user {message.user_id}")
            return _reply(messages.NOT_ALLOWED)

        session = self.sessions.get(message.user_id)
        with session.lock:
            return self._dispatch(session, message)

    def _dispatch(self, session: Session, message: IncomingMessage) -> Replies:
        text = message.text.strip()

        command = self._parse_command(text)
        if command in self._commands:
            return self._commands[command](session, message)

        state = session.state
        if isinstance(state, AwaitingSymbol):
            return self._on_symbol(session, state, text)
        if isinstance(state, AwaitingAmount):
            return self._on_amount(session, state, text)

        return _reply(messages.UNKNOWN_INPUT)

    @staticmethod
    def _parse_command(text: str) -> Optional[str]:
        """'/price@MyBot extra' -> '/price'"""
        if not text.startswith("/"):
            return None
        return text.split()[0].split("@")[0].lower()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _cmd_start(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(IDLE)
        return _reply(messages.WELCOME, messages.MAIN_KEYBOARD)

    def _cmd_trade(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(IDLE)
        return _reply(messages.CHOOSE_ACTION, messages.TRADE_KEYBOARD)

    def _cmd_assets(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(IDLE)
        return _reply(messages.format_assets(get_assets()))

    def _cmd_help(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(IDLE)
        return _reply(messages.HELP)

    def _cmd_balance(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(IDLE)
        snapshot = session.ledger.get_balance(price_lookup=self._live_price)
        return _reply(messages.format_balance(snapshot))

    def _cmd_price(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(AwaitingSymbol(Purpose.PRICE))
        return _reply(messages.ASK_PRICE_SYMBOL)

    def _cmd_buy(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(AwaitingSymbol(Purpose.BUY))
        return _reply(messages.format_buy_prompt(session.ledger.get_capital()))

    def _cmd_sell(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(AwaitingSymbol(Purpose.SELL))
        snapshot = session.ledger.get_balance(price_lookup=self._live_price)
        return [
            OutgoingMessage(messages.format_sell_list(snapshot)),
            OutgoingMessage(messages.ASK_SELL_SYMBOL),
        ]

    def _cmd_grid_strategy(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(AwaitingSymbol(Purpose.GRID))
        return _reply(messages.ASK_GRID_SYMBOL)

    def _cmd_reset(self, session: Session, message: IncomingMessage) -> Replies:
        session.transition(IDLE)
        if not self.settings.is_admin(message.user_id):
            return _reply(messages.ADMIN_ONLY_COMMAND)

        session.ledger.reset()
        capital = f"${session.ledger.get_capital():,.2f}"
        return _reply(messages.LEDGER_RESET.format(capital=capital))

    # ------------------------------------------------------------------
    # Flow steps
    # ------------------------------------------------------------------

    def _on_symbol(self, session: Session, state: AwaitingSymbol, text: str) -> Replies:
        symbol = normalize_symbol(text)
        if not validate_symbol(symbol):
            logger.debug(f"User {session.user_id} sent invalid symbol {text!r}")
            return _reply(messages.format_error(InvalidSymbolError(text)))

        if state.purpose == Purpose.PRICE:
            session.transition(IDLE)
            try:
                price = self.retrying_source.get_current_price(symbol)
            except TradingError as e:
                return _reply(messages.format_error(e))
            return _reply(messages.format_price(symbol, price))

        replies: Replies = []
        if state.purpose == Purpose.GRID:
            try:
                price = self.retrying_source.get_current_price(symbol)
            except TradingError as e:
                session.transition(IDLE)
                return _reply(messages.format_error(e))
            replies.append(OutgoingMessage(messages.format_price(symbol, price)))

        session.transition(AwaitingAmount(symbol, state.purpose))
        replies.append(
            OutgoingMessage(messages.format_amount_prompt(_AMOUNT_VERBS[state.purpose], symbol))
        )
        return replies

    def _on_amount(self, session: Session, state: AwaitingAmount, text: str) -> Replies:
        amount = parse_amount(text)
        if amount is None:
            logger.debug(f"User {session.user_id} sent invalid amount {text!r}")
            return _reply(messages.format_error(InvalidAmountError(text)))

        session.transition(IDLE)
        try:
            if state.purpose == Purpose.BUY:
                return self._buy(session, state.symbol, amount)
            if state.purpose == Purpose.SELL:
                return self._sell(session, state.symbol, amount)
            return self._grid(session, state.symbol, amount)
        except TradingError as e:
            logger.info(f"User {session.user_id} {state.purpose.value} {state.symbol} failed: {e}")
            return _reply(messages.format_error(e))

    def _buy(self, session: Session, symbol: str, amount: float) -> Replies:
        ledger = session.ledger
        price = fetch_price(self.retrying_source, symbol)
        if amount > ledger.get_capital():
            raise InsufficientCapitalError(amount, ledger.get_capital())

        ledger.buy_token(symbol, amount, price)
        return _reply(messages.format_buy_success(symbol, amount, price))

    def _sell(self, session: Session, symbol: str, amount: float) -> Replies:
        ledger = session.ledger
        if ledger.get_position(symbol) is None:
            raise PositionNotFoundError(symbol)

        price = fetch_price(self.retrying_source, symbol)
        proceeds = ledger.sell_token(symbol, amount, price)
        return _reply(messages.format_sell_success(symbol, amount, price, proceeds))

    def _grid(self, session: Session, symbol: str, amount: float) -> Replies:
        result = session.ledger.execute_grid_strategy(
            symbol,
            self.settings.grid_drop_percent,
            self.settings.grid_rise_percent,
            amount,
            self.retrying_source,
        )
        return _reply(messages.format_grid_result(result))

    def _live_price(self, symbol: str) -> float:
        return fetch_price(self.price_source, symbol)
