"""iTunes-backed traffic/difficulty provider"""

import json
import logging
from pathlib import Path

from ...core.types import RateLimitConfig
from .client import ITunesClient
from .scoring import compute_difficulty, compute_traffic

logger = logging.getLogger(__name__)


class ITunesMetricsProvider:
    """Estimates keyword traffic and difficulty from public App Store data"""

    def __init__(self, client: ITunesClient):
        self.client = client

    @classmethod
    def from_config(cls, config_path: str | Path = "config.json") -> "ITunesMetricsProvider":
        """
        Build the provider from the ``providers.itunes`` section of a config file.

        A missing file or section falls back to the client defaults.
        """
        provider_config: dict = {}
        config_file = Path(config_path)
        if config_file.exists():
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
            provider_config = config.get("providers", {}).get("itunes", {})
        else:
            logger.warning(f"Config file not found: {config_path}, using iTunes defaults")

        rate_limit_data = provider_config.get("rate_limit", {})
        rate_limit = RateLimitConfig(
            max_requests_per_period=rate_limit_data.get("max_requests_per_period", 20),
            period_seconds=rate_limit_data.get("period_seconds", 60.0),
            min_delay_between_requests=rate_limit_data.get("min_delay_between_requests", 3.0),
        )

        client = ITunesClient(
            rate_limit=rate_limit,
            country=provider_config.get("country", "us"),
            timeout=provider_config.get("timeout", 15.0),
            max_retries=provider_config.get("max_retries", 3),
        )
        return cls(client)

    async def analyze_keyword(self, keyword: str) -> dict:
        """Fetch search results and suggestions, then score both dimensions"""
        apps = await self.client.search(keyword)
        suggestions = await self.client.get_suggestions(keyword)
        logger.debug(
            f"[iTunes] '{keyword}': {len(apps)} apps, {len(suggestions)} suggestions"
        )

        return {
            "keyword": keyword,
            "traffic": compute_traffic(keyword, apps, suggestions),
            "difficulty": compute_difficulty(keyword, apps),
        }

    async def close(self) -> None:
        await self.client.close()
