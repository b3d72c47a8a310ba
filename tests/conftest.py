"""Shared fixtures: settings without .env, a scripted price source, an engine"""

from typing import Dict, List, Union

import pytest

from tradesim_bot.api.okx_client import PriceFetchError
from tradesim_bot.bot.conversation import ConversationEngine
from tradesim_bot.bot.models import IncomingMessage
from tradesim_bot.config.settings import Settings


Outcome = Union[str, Exception]


class FakePriceSource:
    """
    Scripted PriceSource

    `prices` maps a symbol to either a fixed outcome or a list of outcomes
    consumed one per call (the last one repeats). Exceptions are raised.
    """

    def __init__(self, prices: Dict[str, Union[Outcome, List[Outcome]]] = None):
        self.prices = dict(prices or {})
        self.calls: List[str] = []

    def set(self, symbol: str, outcome: Union[Outcome, List[Outcome]]) -> None:
        self.prices[symbol] = outcome

    def get_current_price(self, symbol: str) -> str:
        self.calls.append(symbol)
        outcome = self.prices.get(symbol)
        if outcome is None:
            raise PriceFetchError(f"no price found for {symbol}")
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeSleep:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


def make_settings(**overrides) -> Settings:
    values = {"telegram_bot_token": "123456:test-token"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def price_source() -> FakePriceSource:
    return FakePriceSource({"BTC-USDT": "50", "ETH-USDT": "2000"})


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def engine(price_source, settings, fake_sleep) -> ConversationEngine:
    return ConversationEngine(price_source, settings=settings, sleep=fake_sleep)


@pytest.fixture
def send(engine):
    """Send text as user 1 and return the reply texts"""

    def _send(text: str, user_id: int = 1) -> List[str]:
        replies = engine.handle_message(
            IncomingMessage(user_id=user_id, chat_id=user_id, text=text, username="tester")
        )
        return [r.text for r in replies]

    return _send


@pytest.fixture
def source_factory():
    return FakePriceSource


@pytest.fixture
def settings_factory():
    return make_settings
