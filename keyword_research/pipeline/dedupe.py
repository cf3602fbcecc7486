"""
Keyword normalization and de-duplication
"""

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_keyword(keyword: str) -> str:
    """Lowercase, trim and collapse internal whitespace to single spaces"""
    return _WHITESPACE.sub(" ", keyword.lower().strip())


def dedupe(raw: list[str]) -> list[str]:
    """Normalize keywords and drop duplicates, keeping first-seen order"""
    seen: set[str] = set()
    unique: list[str] = []
    for keyword in raw:
        normalized = normalize_keyword(keyword)
        if normalized and normalized not in seen:
            seen.add(normalized)
            unique.append(normalized)
    return unique
