"""
Final ordering of keyword results
"""

from keyword_research.pipeline.models import KeywordResult


def finalize(results: list[KeywordResult]) -> list[KeywordResult]:
    """Successful results by opportunity (highest first), then failures.

    Both partitions keep analysis order for ties.
    """
    succeeded = [r for r in results if r.succeeded]
    failed = [r for r in results if not r.succeeded]
    succeeded.sort(key=lambda r: r.opportunity, reverse=True)
    return succeeded + failed
