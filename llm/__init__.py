"""
LLM wrappers and AI keyword generation.
"""

from llm.openai_wrapper import OpenAIWrapper
from llm.config_loader import load_llm_configs, create_random_llm_wrapper
from llm.keyword_generator import KeywordGenerationError, KeywordGenerator

__all__ = [
    "OpenAIWrapper",
    "load_llm_configs",
    "create_random_llm_wrapper",
    "KeywordGenerationError",
    "KeywordGenerator",
]
