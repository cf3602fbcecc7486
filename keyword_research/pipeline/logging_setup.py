"""
Logging configuration for research runs
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party and transport loggers
QUIET_LOGGERS = ("provider", "llm", "openai", "httpx", "curl_cffi")


def setup_logging(
    log_file: Path, verbose: bool = False, console: Console | None = None
) -> list[logging.Handler]:
    """Send pipeline logs to ``log_file`` (and the console when verbose)

    Returns the handlers attached to the ``keyword_research`` logger so a
    caller running several research jobs can detach them again.
    """
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handlers: list[logging.Handler] = [file_handler]

    if verbose:
        console_handler = RichHandler(console=console, show_path=False, markup=False)
        console_handler.setLevel(logging.DEBUG)
        handlers.append(console_handler)

    research_logger = logging.getLogger("keyword_research")
    research_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in handlers:
        research_logger.addHandler(handler)
    return handlers
