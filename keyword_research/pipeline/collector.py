"""
Candidate keyword collection for an app
"""

import logging
from dataclasses import dataclass, field

from keyword_research.pipeline.dedupe import dedupe
from keyword_research.pipeline.exceptions import InputValidation
from llm.keyword_generator import KeywordGenerationError, KeywordGenerator
from provider.core.exceptions import ProviderError
from provider.core.types import AppSnapshot
from provider.providers.itunes.client import ITunesClient

logger = logging.getLogger(__name__)


@dataclass
class CollectedKeywords:
    """Candidate keywords for one app, with where each batch came from"""

    app: AppSnapshot
    competitors: list[AppSnapshot] = field(default_factory=list)
    main_app_keywords: list[str] = field(default_factory=list)
    competitor_keywords: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)

    def source_counts(self) -> dict[str, int]:
        return {
            "Main App Keywords": len(self.main_app_keywords),
            "Competitor Keywords": len(self.competitor_keywords),
            "Autocomplete Suggestions": len(self.suggestions),
        }


def parse_app_id(app_id: str | int) -> int:
    try:
        numeric = int(app_id)
    except (TypeError, ValueError):
        raise InputValidation(f"App ID must be a valid numeric value, got {app_id!r}") from None
    if numeric <= 0:
        raise InputValidation(f"App ID must be positive, got {numeric}")
    return numeric


class KeywordCollector:
    """Merges AI-generated keywords and App Store autocomplete suggestions"""

    def __init__(
        self,
        client: ITunesClient,
        generator: KeywordGenerator,
        max_competitors: int = 7,
        suggestion_seeds: int = 5,
    ):
        self.client = client
        self.generator = generator
        self.max_competitors = max_competitors
        self.suggestion_seeds = suggestion_seeds

    async def collect(self, app_id: str | int) -> CollectedKeywords:
        numeric_id = parse_app_id(app_id)
        logger.info(f"Collecting keywords for app ID {numeric_id}")

        app = await self.client.lookup(numeric_id)
        collected = CollectedKeywords(app=app)

        try:
            collected.competitors = await self.client.find_competitors(app, self.max_competitors)
        except ProviderError as e:
            logger.warning(f"Could not find competitors for '{app.title}': {e}")

        # The main app's keywords are required; competitor keywords are a bonus
        collected.main_app_keywords = await self.generator.generate(app)

        for competitor in collected.competitors:
            try:
                collected.competitor_keywords.extend(await self.generator.generate(competitor))
            except KeywordGenerationError as e:
                logger.warning(f"Skipping competitor '{competitor.title}': {e}")

        ai_keywords = dedupe(collected.main_app_keywords + collected.competitor_keywords)
        logger.info(
            f"Deduplicated AI keywords: "
            f"{len(collected.main_app_keywords) + len(collected.competitor_keywords)} "
            f"-> {len(ai_keywords)}"
        )

        collected.suggestions = await self._suggestions(
            dedupe(collected.main_app_keywords)[: self.suggestion_seeds]
        )
        collected.keywords = dedupe(ai_keywords + collected.suggestions)
        logger.info(f"Total unique keywords to analyze: {len(collected.keywords)}")
        return collected

    async def _suggestions(self, seeds: list[str]) -> list[str]:
        """Autocomplete terms are searches users actually type"""
        suggestions: list[str] = []
        for seed in seeds:
            try:
                suggestions.extend(await self.client.get_suggestions(seed))
            except ProviderError as e:
                logger.warning(f"Failed to get suggestions for '{seed}': {e}")
        return dedupe(suggestions)
