"""Core data types for the keyword metrics provider"""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class RateLimitConfig:
    """Rate limiting configuration"""

    max_requests_per_period: int = 20  # Max requests in time window
    period_seconds: float = 60.0  # Time window size
    min_delay_between_requests: float = 3.0  # Min delay between requests


@dataclass
class AppSnapshot:
    """App Store metadata captured at the start of a research run"""

    app_id: int
    title: str
    description: str = ""
    developer: str = ""
    genre: str = ""
    rating: float | None = None
    rating_count: int = 0
    url: str = ""
    screenshots: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_itunes(cls, payload: dict[str, Any]) -> "AppSnapshot":
        """Build a snapshot from an iTunes lookup/search result entry"""
        return cls(
            app_id=int(payload["trackId"]),
            title=payload.get("trackName", ""),
            description=payload.get("description", ""),
            developer=payload.get("artistName", ""),
            genre=payload.get("primaryGenreName", ""),
            rating=payload.get("averageUserRating"),
            rating_count=payload.get("userRatingCount", 0),
            url=payload.get("trackViewUrl", ""),
            screenshots=list(payload.get("screenshotUrls") or []),
        )
