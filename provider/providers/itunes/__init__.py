"""Apple App Store (iTunes) metrics provider"""

from .client import ITunesClient
from .provider import ITunesMetricsProvider

__all__ = ["ITunesClient", "ITunesMetricsProvider"]
