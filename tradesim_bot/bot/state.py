"""
Conversation state and per-user sessions

Each session holds exactly one conversation state value, so a user
is always either idle, waiting to type a symbol, or waiting to type
an amount for a known symbol.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Union

from loguru import logger

from ..trading.ledger import Ledger


class Purpose(Enum):
    """What a multi-step flow will do once its input is complete"""
    PRICE = "PRICE"
    BUY = "BUY"
    SELL = "SELL"
    GRID = "GRID"


@dataclass(frozen=True)
class Idle:
    """No input expected"""


@dataclass(frozen=True)
class AwaitingSymbol:
    """Next message should be a symbol"""
    purpose: Purpose


@dataclass(frozen=True)
class AwaitingAmount:
    """Next message should be an amount for `symbol`"""
    symbol: str
    purpose: Purpose


ConversationState = Union[Idle, AwaitingSymbol, AwaitingAmount]

IDLE = Idle()


@dataclass
class Session:
    """Everything owned by one user: ledger, conversation state and its lock"""
    user_id: int
    ledger: Ledger
    state: ConversationState = IDLE
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def transition(self, state: ConversationState) -> None:
        """Move to a new conversation state"""
        if state != self.state:
            logger.debug(f"Session {self.user_id}: {self.state} -> {state}")
        self.state = state


class SessionStore:
    """
    Sessions keyed by user id, created on first use

    Access to a session's state must happen while holding session.lock.
    """

    def __init__(self, starting_capital: float = 100.0):
        self.starting_capital = starting_capital
        self._sessions: Dict[int, Session] = {}
        self._lock = threading.Lock()

    def get(self, user_id: int) -> Session:
        """Return the user's session, creating it if needed"""
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = Session(user_id=user_id, ledger=Ledger(self.starting_capital))
                self._sessions[user_id] = session
                logger.info(f"New session for user {user_id} with ${self.starting_capital:,.2f}")
            return session

    def __contains__(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
