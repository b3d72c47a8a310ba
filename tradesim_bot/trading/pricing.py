"""
Price fetching with retry on rate limits
"""

import time
from typing import Callable, Protocol

from loguru import logger

from ..api.okx_client import PriceFetchError, RateLimitError
from ..utils.helpers import parse_price
from .errors import PriceUnavailableError


class PriceSource(Protocol):
    """Anything that can quote a symbol, e.g. OKXClient"""

    def get_current_price(self, symbol: str) -> str:
        ...


def get_price_with_retries(
    source: PriceSource,
    symbol: str,
    max_retries: int = 3,
    retry_delay: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Fetch a price, waiting and retrying while the exchange rate-limits us

    Any failure other than a rate limit is reported immediately.

    Args:
        source: Price source to query
        symbol: Instrument to quote
        max_retries: Total number of attempts
        retry_delay: Seconds to wait after a rate-limited attempt
        sleep: Sleep function (replaced in tests)

    Returns:
        Price string as returned by the source

    Raises:
        PriceUnavailableError: When the price could not be fetched
    """
    for attempt in range(1, max_retries + 1):
        try:
            return source.get_current_price(symbol)
        except RateLimitError as e:
            logger.warning(f"Rate limited fetching {symbol} (attempt {attempt}/{max_retries}): {e}")
            if attempt < max_retries:
                sleep(retry_delay)
        except PriceFetchError as e:
            raise PriceUnavailableError(str(e)) from e

    raise PriceUnavailableError(f"could not fetch price after {max_retries} attempts")


def fetch_price(source: PriceSource, symbol: str) -> float:
    """
    Quote a symbol as a float

    Raises:
        PriceUnavailableError: If the source fails or returns garbage
    """
    try:
        raw = source.get_current_price(symbol)
    except PriceFetchError as e:
        raise PriceUnavailableError(str(e)) from e

    try:
        return parse_price(raw)
    except (TypeError, ValueError) as e:
        raise PriceUnavailableError(f"invalid price for {symbol}: {raw!r}") from e


class RetryingPriceSource:
    """PriceSource wrapper applying get_price_with_retries to every call"""

    def __init__(
        self,
        source: PriceSource,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.source = source
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def get_current_price(self, symbol: str) -> str:
        return get_price_with_retries(
            self.source,
            symbol,
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            sleep=self._sleep,
        )
