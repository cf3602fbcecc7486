"""
Data models for the keyword research pipeline
"""

from dataclasses import dataclass, field
from enum import Enum

from keyword_research.analyzer.models import SummaryReport

SCHEMA_VERSION = 1


class Recommendation(str, Enum):
    """Actionable tier for a keyword"""

    EXCELLENT = "excellent"
    GOOD = "good"
    CONSIDER = "consider"
    CHALLENGING = "challenging"
    AVOID = "avoid"
    ANALYSIS_FAILED = "analysis_failed"


def _optional_score(data: dict, name: str) -> int | None:
    value = data.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
        raise ValueError(f"{name} must be an integer in 0..100, got {value!r}")
    return value


@dataclass
class KeywordResult:
    """Result from scoring a single keyword

    ``opportunity`` is set iff the analysis succeeded (which implies traffic
    and difficulty are set); ``recommendation`` is ANALYSIS_FAILED iff it did not.
    """

    keyword: str
    traffic: int | None
    difficulty: int | None
    opportunity: int | None
    recommendation: Recommendation
    succeeded: bool
    error: str | None
    analyzed_at: str

    def __post_init__(self):
        if self.succeeded:
            if None in (self.traffic, self.difficulty, self.opportunity):
                raise ValueError(f"Succeeded result for '{self.keyword}' is missing scores")
            if self.recommendation is Recommendation.ANALYSIS_FAILED:
                raise ValueError(f"Succeeded result for '{self.keyword}' marked as failed")
        else:
            if (self.traffic, self.difficulty, self.opportunity) != (None, None, None):
                raise ValueError(f"Failed result for '{self.keyword}' carries scores")
            if self.recommendation is not Recommendation.ANALYSIS_FAILED:
                raise ValueError(f"Failed result for '{self.keyword}' has a tier")

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "keyword": self.keyword,
            "traffic": self.traffic,
            "difficulty": self.difficulty,
            "opportunity": self.opportunity,
            "recommendation": self.recommendation.value,
            "succeeded": self.succeeded,
            "error": self.error,
            "analyzed_at": self.analyzed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KeywordResult":
        """Rebuild from JSON; raises ValueError/KeyError/TypeError on bad data"""
        succeeded = data["succeeded"]
        if not isinstance(succeeded, bool):
            raise ValueError(f"succeeded must be a bool, got {succeeded!r}")
        return cls(
            keyword=str(data["keyword"]),
            traffic=_optional_score(data, "traffic"),
            difficulty=_optional_score(data, "difficulty"),
            opportunity=_optional_score(data, "opportunity"),
            recommendation=Recommendation(data["recommendation"]),
            succeeded=succeeded,
            error=data.get("error"),
            analyzed_at=str(data["analyzed_at"]),
        )


@dataclass
class Checkpoint:
    """Durable progress of one run; results are append-only by index"""

    app_snapshot: dict
    keywords: list[str]
    last_analyzed_index: int = -1
    results: list[KeywordResult] = field(default_factory=list)
    last_updated: str | None = None

    @property
    def total_keywords(self) -> int:
        return len(self.keywords)

    @property
    def next_index(self) -> int:
        return self.last_analyzed_index + 1

    @property
    def is_complete(self) -> bool:
        return self.next_index >= self.total_keywords

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "app_snapshot": self.app_snapshot,
            "keywords": self.keywords,
            "last_analyzed_index": self.last_analyzed_index,
            "total_keywords": self.total_keywords,
            "results": [r.to_dict() for r in self.results],
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Checkpoint":
        """Rebuild and validate a stored checkpoint

        Raises ValueError (or KeyError/TypeError) when the data is not a
        structurally valid checkpoint.
        """
        if not isinstance(data, dict):
            raise ValueError("checkpoint is not a JSON object")
        version = data.get("schema_version")
        if version != SCHEMA_VERSION:
            raise ValueError(f"unsupported schema_version {version!r}")

        keywords = data["keywords"]
        if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
            raise ValueError("keywords must be a list of strings")
        if data.get("total_keywords") != len(keywords):
            raise ValueError("total_keywords does not match the keyword list")

        last_index = data["last_analyzed_index"]
        if isinstance(last_index, bool) or not isinstance(last_index, int):
            raise ValueError(f"last_analyzed_index must be an int, got {last_index!r}")

        results = [KeywordResult.from_dict(r) for r in data["results"]]
        if len(results) != last_index + 1:
            raise ValueError(
                f"{len(results)} results stored for last_analyzed_index {last_index}"
            )
        if len(results) > len(keywords):
            raise ValueError("more results than keywords")
        for i, result in enumerate(results):
            if result.keyword != keywords[i]:
                raise ValueError(f"result {i} is for '{result.keyword}', expected '{keywords[i]}'")

        app_snapshot = data.get("app_snapshot") or {}
        if not isinstance(app_snapshot, dict):
            raise ValueError("app_snapshot must be an object")

        return cls(
            app_snapshot=app_snapshot,
            keywords=keywords,
            last_analyzed_index=last_index,
            results=results,
            last_updated=data.get("last_updated"),
        )


@dataclass
class FinalArtifact:
    """Ranked, summarized output of a completed run"""

    app_snapshot: dict
    completed_at: str
    total_keywords: int
    results: list[KeywordResult]
    summary: SummaryReport

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "app_snapshot": self.app_snapshot,
            "completed_at": self.completed_at,
            "total_keywords": self.total_keywords,
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FinalArtifact":
        if not isinstance(data, dict):
            raise ValueError("final artifact is not a JSON object")
        version = data.get("schema_version")
        if version != SCHEMA_VERSION:
            raise ValueError(f"unsupported schema_version {version!r}")
        return cls(
            app_snapshot=data.get("app_snapshot") or {},
            completed_at=str(data["completed_at"]),
            total_keywords=int(data["total_keywords"]),
            results=[KeywordResult.from_dict(r) for r in data["results"]],
            summary=SummaryReport.from_dict(data["summary"]),
        )
