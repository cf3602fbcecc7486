"""
Async client for OpenAI-compatible chat endpoints used for keyword generation.
"""

import json
import logging
from typing import Any, Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAIWrapper:
    """
    Thin async wrapper over ``AsyncOpenAI`` chat completions in JSON mode.

    Works with any OpenAI-compatible server (OpenAI, vLLM, Ollama, ...) as long
    as it honours ``response_format={"type": "json_object"}``.

    Example:
        async with OpenAIWrapper(base_url, api_key, "gpt-4o-mini") as llm:
            data = await llm.call_json('Return {"keywords": [...]} for ...')
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        organization: Optional[str] = None,
        project: Optional[str] = None,
        temperature: float = 0.3,
    ):
        """
        Args:
            base_url: Endpoint base URL, e.g. https://api.openai.com/v1
            api_key: API key for the endpoint
            model: Model name
            timeout: Request timeout in seconds
            max_retries: Retries performed by the openai client itself
            organization: Optional organization ID
            project: Optional project ID
            temperature: Sampling temperature; low keeps keyword lists focused
        """
        self.model = model
        self.temperature = temperature
        self.client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            organization=organization,
            project=project,
        )

    async def call_json(self, prompt: str, system_prompt: Optional[str] = None) -> Any:
        """
        Send one prompt and decode the model's JSON reply.

        Raises:
            openai.APIError: If the request fails after the client's retries
            ValueError: If the reply is empty or not valid JSON
        """
        messages = [{"role": "user", "content": prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            response_format={"type": "json_object"},
        )

        choice = response.choices[0]
        if choice.finish_reason == "length":
            logger.warning(f"[{self.model}] reply was truncated at the token limit")

        content = choice.message.content
        if not content:
            raise ValueError("Model returned empty response")
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Model returned invalid JSON: {e}") from e

    async def close(self):
        await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, _exc_type, _exc_val, _exc_tb):
        await self.close()
