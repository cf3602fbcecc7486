"""Keyword metrics provider protocol"""

from typing import Any, Protocol


class MetricsProvider(Protocol):
    """Protocol for traffic/difficulty providers

    Implementations return the raw provider payload for one keyword:
    ``{"traffic": {"score": float}, "difficulty": {"score": float}}`` with
    scores on a 0-10 scale. Either subfield may be missing when the provider
    has no data. Transport failures are raised, not encoded in the payload.
    """

    async def analyze_keyword(self, keyword: str) -> Any:
        """Fetch raw traffic and difficulty signals for a keyword"""
        ...
