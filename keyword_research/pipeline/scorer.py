"""
Per-keyword scoring against a traffic/difficulty provider
"""

import logging
import math
from datetime import datetime
from typing import Any

from keyword_research.pipeline.models import KeywordResult, Recommendation
from provider.core.exceptions import UpstreamMalformed, UpstreamNoData
from provider.providers.base import MetricsProvider

logger = logging.getLogger(__name__)

TRAFFIC_WEIGHT = 0.6
EASE_WEIGHT = 0.4


def round_half_up(value: float) -> int:
    """Round .5 away from zero (built-in round() rounds half to even)"""
    return int(math.floor(value + 0.5))


def scale_raw_score(raw: float) -> int:
    """Map a provider 0-10 score onto 0-100"""
    return max(0, min(100, round_half_up(raw * 10)))


def compute_opportunity(traffic: int | None, difficulty: int | None) -> int | None:
    """Higher traffic and lower difficulty make a better opportunity (0-100)"""
    if traffic is None or difficulty is None:
        return None
    return round_half_up(traffic * TRAFFIC_WEIGHT + (100 - difficulty) * EASE_WEIGHT)


def classify_recommendation(traffic: int, difficulty: int) -> Recommendation:
    """First-match tiering calibrated on real App Store data.

    Most niche keywords score 10-30 on traffic; 40+ is already good volume.
    """
    if traffic >= 25 and difficulty <= 35:
        return Recommendation.EXCELLENT
    if traffic >= 15 and difficulty <= 45:
        return Recommendation.GOOD
    if traffic >= 40 and difficulty >= 60:
        return Recommendation.CHALLENGING
    if traffic <= 15 and difficulty >= 50:
        return Recommendation.AVOID
    return Recommendation.CONSIDER


def _extract_score(keyword: str, response: dict, name: str, missing_detail: str) -> float:
    section = response.get(name)
    if section is None:
        raise UpstreamNoData(keyword, missing_detail)
    if not isinstance(section, dict):
        raise UpstreamMalformed(keyword, f"{name} section is not an object", response)

    score = section.get("score")
    if score is None:
        raise UpstreamNoData(keyword, missing_detail)
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
        raise UpstreamMalformed(keyword, f"{name} score is not a number: {score!r}", response)
    return float(score)


def validate_response(keyword: str, response: Any) -> tuple[float, float]:
    """Return (traffic_raw, difficulty_raw) or raise the first failing check"""
    if not isinstance(response, dict):
        raise UpstreamMalformed(keyword, "Provider returned empty or invalid response", response)

    traffic = _extract_score(
        keyword, response, "traffic", "No traffic data returned - keyword may have no search volume"
    )
    difficulty = _extract_score(
        keyword, response, "difficulty", "No difficulty data returned - insufficient ranking data"
    )
    return traffic, difficulty


class KeywordScorer:
    """Scores one keyword at a time; failures are returned, never raised"""

    def __init__(self, provider: MetricsProvider):
        self.provider = provider

    async def analyze(self, keyword: str) -> KeywordResult:
        analyzed_at = datetime.now().isoformat()

        try:
            response = await self.provider.analyze_keyword(keyword)
            traffic_raw, difficulty_raw = validate_response(keyword, response)
        except Exception as e:
            logger.error(f"Failed to analyze keyword '{keyword}': {e}")
            return KeywordResult(
                keyword=keyword,
                traffic=None,
                difficulty=None,
                opportunity=None,
                recommendation=Recommendation.ANALYSIS_FAILED,
                succeeded=False,
                error=str(e) or type(e).__name__,
                analyzed_at=analyzed_at,
            )

        traffic = scale_raw_score(traffic_raw)
        difficulty = scale_raw_score(difficulty_raw)
        return KeywordResult(
            keyword=keyword,
            traffic=traffic,
            difficulty=difficulty,
            opportunity=compute_opportunity(traffic, difficulty),
            recommendation=classify_recommendation(traffic, difficulty),
            succeeded=True,
            error=None,
            analyzed_at=analyzed_at,
        )
