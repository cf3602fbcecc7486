"""LLM configuration loader"""

import json
import logging
import random
from pathlib import Path

from llm.openai_wrapper import OpenAIWrapper

logger = logging.getLogger(__name__)


def load_llm_configs(config_path: str | Path = "config.json") -> list[dict]:
    """Load LLM endpoint configurations from the ``llm`` list of a config file

    Returns an empty list when the file is missing or unreadable.
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load LLM configs: {e}")
        return []

    llm_configs = config.get("llm", [])
    if not llm_configs:
        logger.warning("No LLM configurations found in config file")
    return llm_configs


def create_random_llm_wrapper(config_path: str | Path = "config.json") -> OpenAIWrapper | None:
    """Create an OpenAI wrapper from a randomly selected LLM config

    Returns None if no usable config is available.
    """
    llm_configs = load_llm_configs(config_path)
    if not llm_configs:
        return None

    config = random.choice(llm_configs)
    logger.info(f"Selected LLM config: {config.get('model')} at {config.get('base_url')}")

    try:
        return OpenAIWrapper(
            base_url=config["base_url"],
            api_key=config["api_key"],
            model=config["model"],
            timeout=config.get("timeout", 60.0),
            max_retries=config.get("max_retries", 2),
            organization=config.get("organization"),
            project=config.get("project"),
            temperature=config.get("temperature", 0.3),
        )
    except KeyError as e:
        logger.error(f"LLM config is missing required field {e}")
        return None
