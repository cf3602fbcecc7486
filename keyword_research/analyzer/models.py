"""
Data models for analyzer
"""

from dataclasses import asdict, dataclass


@dataclass
class SummaryReport:
    """Tier counts derived from a result list"""

    total: int = 0
    analyzed: int = 0
    failed: int = 0
    excellent: int = 0
    good: int = 0
    consider: int = 0
    challenging: int = 0
    avoid: int = 0

    @property
    def top_opportunities(self) -> int:
        return self.excellent + self.good

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SummaryReport":
        return cls(**{key: int(data.get(key, 0)) for key in cls.__dataclass_fields__})


@dataclass
class ReportContext:
    """Everything the text report shows besides the results themselves"""

    app_title: str
    report_date: str
    total_keywords: int
    in_progress: bool = False
    last_updated: str | None = None
    competitors_analyzed: int | None = None
    # source name -> keyword count, e.g. {"Main App Keywords": 24}
    keyword_sources: dict[str, int] | None = None
