"""
AI keyword generation for App Store listings.
"""

import logging

import openai

from llm.openai_wrapper import OpenAIWrapper
from provider.core.types import AppSnapshot

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an App Store Optimization specialist. "
    'Always answer with a JSON object of the form {"keywords": ["..."]}.'
)

PROMPT_TEMPLATE = """Analyze this App Store listing and generate the most relevant search keywords that users would type to find this app.

Title: {title}
Category: {genre}

Description:
{description}

Rules:
- Only exact search phrases derived from the title, category and description.
- Exclude long-tail phrases, generic "* app" phrases and anything a user would not actually search.
- Every keyword must be clearly relevant to the listing.
- Return at least {minimum} keywords."""

# Long descriptions add cost without adding keywords
MAX_DESCRIPTION_CHARS = 4000


class KeywordGenerationError(Exception):
    """The model reply did not contain a usable keyword list"""

    def __init__(self, app_title: str, detail: str):
        self.app_title = app_title
        self.detail = detail
        super().__init__(f"Keyword generation failed for '{app_title}': {detail}")


class KeywordGenerator:
    """Generates candidate search keywords for an app with an LLM"""

    def __init__(self, wrapper: OpenAIWrapper, minimum_keywords: int = 20):
        self.wrapper = wrapper
        self.minimum_keywords = minimum_keywords

    def build_prompt(self, app: AppSnapshot) -> str:
        return PROMPT_TEMPLATE.format(
            title=app.title,
            genre=app.genre or "Unknown",
            description=(app.description or "")[:MAX_DESCRIPTION_CHARS],
            minimum=self.minimum_keywords,
        )

    async def generate(self, app: AppSnapshot) -> list[str]:
        """Return the raw keyword list suggested for an app

        Raises:
            KeywordGenerationError: If the reply has no keyword list
        """
        try:
            data = await self.wrapper.call_json(self.build_prompt(app), SYSTEM_PROMPT)
        except (ValueError, openai.APIError) as e:
            raise KeywordGenerationError(app.title, str(e)) from e

        keywords = data.get("keywords") if isinstance(data, dict) else None
        if not isinstance(keywords, list):
            raise KeywordGenerationError(app.title, "reply has no 'keywords' list")

        cleaned = [k.strip() for k in keywords if isinstance(k, str) and k.strip()]
        logger.info(f"Generated {len(cleaned)} keywords for '{app.title}'")
        return cleaned
