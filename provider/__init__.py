"""Keyword metrics provider - App Store traffic/difficulty signals"""

from .core.exceptions import (
    APIError,
    AppNotFound,
    ProviderError,
    RateLimited,
    UpstreamMalformed,
    UpstreamNoData,
)
from .core.types import AppSnapshot, RateLimitConfig

__all__ = [
    "APIError",
    "AppNotFound",
    "AppSnapshot",
    "ProviderError",
    "RateLimitConfig",
    "RateLimited",
    "UpstreamMalformed",
    "UpstreamNoData",
]
