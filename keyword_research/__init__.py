"""
App Store keyword research - resumable keyword scoring pipeline
"""

from keyword_research.pipeline.exceptions import (
    CorruptCheckpoint,
    InputValidation,
    KeywordResearchError,
    PersistenceFailure,
    RunLocked,
)
from keyword_research.pipeline.models import (
    Checkpoint,
    FinalArtifact,
    KeywordResult,
    Recommendation,
)
from keyword_research.analyzer.models import ReportContext, SummaryReport
from keyword_research.analyzer.summary import SummaryAggregator
from keyword_research.pipeline.dedupe import dedupe, normalize_keyword
from keyword_research.pipeline.ranker import finalize
from keyword_research.pipeline.scorer import KeywordScorer
from keyword_research.pipeline.checkpoint_store import (
    CheckpointStore,
    LoadResult,
    LoadStatus,
    make_run_key,
)
from keyword_research.pipeline.config import PipelineConfig, load_pipeline_config
from keyword_research.pipeline.batch_runner import BatchRunner, RunState

__all__ = [
    "BatchRunner",
    "Checkpoint",
    "CheckpointStore",
    "CorruptCheckpoint",
    "FinalArtifact",
    "InputValidation",
    "KeywordResearchError",
    "KeywordResult",
    "KeywordScorer",
    "LoadResult",
    "LoadStatus",
    "PersistenceFailure",
    "PipelineConfig",
    "Recommendation",
    "ReportContext",
    "RunLocked",
    "RunState",
    "SummaryAggregator",
    "SummaryReport",
    "dedupe",
    "finalize",
    "load_pipeline_config",
    "make_run_key",
    "normalize_keyword",
]
