"""OKX market data integration module"""

from .okx_client import OKXClient, PriceFetchError, RateLimitError, get_assets

__all__ = [
    "OKXClient",
    "PriceFetchError",
    "RateLimitError",
    "get_assets",
]
