"""
Pipeline configuration
"""

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path

from keyword_research.pipeline.exceptions import InputValidation

logger = logging.getLogger(__name__)

CORRUPT_POLICIES = ("restart", "abort")


@dataclass
class PipelineConfig:
    """Knobs passed into the collector and runner at construction"""

    results_dir: Path = Path("results")
    progress_interval: int = 5  # progress notification every K keywords
    summary_interval: int = 10  # summary.txt refresh every M keywords
    inter_call_delay: float = 0.5  # seconds between provider calls
    corrupt_checkpoint_policy: str = "restart"  # "restart" | "abort"
    max_competitors: int = 7
    suggestion_seeds: int = 5

    def __post_init__(self):
        self.results_dir = Path(self.results_dir)
        if self.progress_interval < 1 or self.summary_interval < 1:
            raise InputValidation("progress_interval and summary_interval must be >= 1")
        if self.inter_call_delay < 0:
            raise InputValidation("inter_call_delay must be >= 0")
        if self.corrupt_checkpoint_policy not in CORRUPT_POLICIES:
            raise InputValidation(
                f"corrupt_checkpoint_policy must be one of {CORRUPT_POLICIES}, "
                f"got {self.corrupt_checkpoint_policy!r}"
            )


def load_pipeline_config(config_path: str | Path = "config.json") -> PipelineConfig:
    """Read the ``pipeline`` section of a config file; missing keys use defaults"""
    config_file = Path(config_path)
    if not config_file.exists():
        logger.info(f"Config file not found: {config_path}, using pipeline defaults")
        return PipelineConfig()

    with open(config_file, "r", encoding="utf-8") as f:
        config = json.load(f)

    section = config.get("pipeline", {})
    known = {f.name for f in fields(PipelineConfig)}
    unknown = set(section) - known
    if unknown:
        logger.warning(f"Ignoring unknown pipeline settings: {', '.join(sorted(unknown))}")

    return PipelineConfig(**{k: v for k, v in section.items() if k in known})
