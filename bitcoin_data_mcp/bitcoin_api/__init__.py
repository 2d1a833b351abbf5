"""HTTP client wrappers for Bitcoin explorer APIs."""

from .client import (
    BackendUnreachableError,
    BitcoinApiClient,
    BitcoinApiError,
    NotFoundError,
    UpstreamRateLimitedError,
    default_client,
)

__all__ = [
    "BitcoinApiClient",
    "BitcoinApiError",
    "BackendUnreachableError",
    "NotFoundError",
    "UpstreamRateLimitedError",
    "default_client",
]
