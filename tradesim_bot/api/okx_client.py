"""
OKX public market data client

Only the unauthenticated ticker endpoint is used, so no API keys
are needed.
"""

from typing import List, Optional

import requests
from loguru import logger

from ..config.settings import Settings, get_settings
from ..utils.helpers import SUPPORTED_SYMBOLS


# OKX answers with this code instead of HTTP 429 on some endpoints
OKX_RATE_LIMIT_CODE = "50011"

# Every advertised asset can be traded
POPULAR_ASSETS = list(SUPPORTED_SYMBOLS)


class PriceFetchError(Exception):
    """Price could not be fetched from the exchange"""


class RateLimitError(PriceFetchError):
    """Exchange rejected the request because of rate limiting"""


def get_assets() -> List[str]:
    """Return the list of ten popular assets"""
    return list(POPULAR_ASSETS)


class OKXClient:
    """
    Fetches current prices from the OKX REST API

    Attributes:
        base_url: API root, e.g. https://www.okx.com
        timeout: Per-request timeout in seconds
    """

    TICKER_PATH = "/api/v5/market/ticker"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the OKX client

        Args:
            settings: Application settings (uses default if not provided)
            session: Shared requests session (created if not provided)
        """
        self.settings = settings or get_settings()
        self.base_url = self.settings.okx_base_url.rstrip("/")
        self.timeout = self.settings.request_timeout
        self._session = session or requests.Session()

    def get_current_price(self, symbol: str) -> str:
        """
        Get the last traded price for an instrument

        Args:
            symbol: OKX instrument id (e.g. 'BTC-USDT')

        Returns:
            Last price exactly as reported by the exchange

        Raises:
            RateLimitError: If the exchange is throttling requests
            PriceFetchError: On any other failure
        """
        url = f"{self.base_url}{self.TICKER_PATH}"
        logger.debug(f"Requesting {url}?instId={symbol}")

        try:
            response = self._session.get(url, params={"instId": symbol}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Price request for {symbol} failed: {e}")
            raise PriceFetchError(f"request failed: {e}") from e

        logger.debug(f"OKX status code: {response.status_code}")

        if response.status_code == 429:
            raise RateLimitError("429 Too Many Requests")
        if response.status_code != 200:
            raise PriceFetchError(f"request error: HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Could not decode OKX response for {symbol}: {e}")
            raise PriceFetchError(f"invalid response: {e}") from e

        if not isinstance(payload, dict):
            raise PriceFetchError(f"unexpected response for {symbol}: {type(payload).__name__}")

        code = str(payload.get("code", ""))
        if code == OKX_RATE_LIMIT_CODE:
            raise RateLimitError(payload.get("msg") or "rate limit reached")

        data = payload.get("data") or []
        if (
            code != "0"
            or not isinstance(data, list)
            or not data
            or not isinstance(data[0], dict)
            or not data[0].get("last")
        ):
            raise PriceFetchError(f"no price found for {symbol}")

        price = data[0]["last"]
        logger.info(f"Price for {symbol}: {price}")
        return price

    def close(self) -> None:
        """Close the underlying HTTP session"""
        self._session.close()

    def __enter__(self) -> "OKXClient":
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit"""
        self.close()

    def __repr__(self) -> str:
        """String representation"""
        return f"OKXClient({self.base_url})"
