"""
Resumable keyword scoring loop
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum

from keyword_research.analyzer.models import ReportContext
from keyword_research.analyzer.summary import SummaryAggregator
from keyword_research.pipeline.checkpoint_store import (
    CheckpointStore,
    LoadStatus,
    validate_run_key,
)
from keyword_research.pipeline.config import PipelineConfig
from keyword_research.pipeline.dedupe import normalize_keyword
from keyword_research.pipeline.exceptions import (
    CorruptCheckpoint,
    InputValidation,
    PersistenceFailure,
)
from keyword_research.pipeline.models import Checkpoint, FinalArtifact
from keyword_research.pipeline.progress_tracker import ProgressTracker
from keyword_research.pipeline.ranker import finalize
from keyword_research.pipeline.scorer import KeywordScorer

logger = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "idle"
    RESUMING = "resuming"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class BatchRunner:
    """Scores a keyword list sequentially, checkpointing after every keyword"""

    def __init__(
        self,
        scorer: KeywordScorer,
        store: CheckpointStore,
        config: PipelineConfig | None = None,
        aggregator: SummaryAggregator | None = None,
        progress: ProgressTracker | None = None,
    ):
        self.scorer = scorer
        self.store = store
        self.config = config or PipelineConfig()
        self.aggregator = aggregator or SummaryAggregator()
        self.progress = progress
        self.state = RunState.IDLE
        self.load_status: LoadStatus | None = None
        # Extra lines for the final report, e.g. {"Main App Keywords": 24}
        self.keyword_sources: dict[str, int] | None = None
        self.competitors_analyzed: int | None = None

    async def run(self, run_key: str, app_snapshot: dict, keywords: list[str]) -> FinalArtifact:
        """Run (or resume) the pipeline for a run key and return the final artifact

        Raises:
            InputValidation: Bad run key or keyword list; nothing is written
            RunLocked: Another runner owns the run key
            CorruptCheckpoint: Unusable checkpoint under the "abort" policy
            PersistenceFailure: A checkpoint or artifact write failed
        """
        self.validate(run_key, keywords)

        try:
            with self.store.lock(run_key):
                return await self._run_locked(run_key, app_snapshot, keywords)
        finally:
            # Includes cancellation and errors raised by the progress hook
            if self.state is not RunState.COMPLETED:
                self.state = RunState.ABORTED

    async def _run_locked(
        self, run_key: str, app_snapshot: dict, keywords: list[str]
    ) -> FinalArtifact:
        self.state = RunState.RESUMING
        checkpoint, already_complete = self._resume(run_key, app_snapshot, keywords)

        if already_complete:
            existing = self.store.load_final(run_key)
            if existing is not None:
                logger.info(f"Run '{run_key}' already completed; reusing final artifact")
                self.state = RunState.COMPLETED
                return existing

        self.state = RunState.RUNNING
        await self._score_remaining(run_key, checkpoint)

        return self._complete(run_key, checkpoint)

    def validate(self, run_key: str, keywords: list[str]) -> None:
        """Raise InputValidation unless the run key and keyword list are usable"""
        validate_run_key(run_key)
        if not keywords:
            raise InputValidation("keyword list is empty")

        seen: set[str] = set()
        for keyword in keywords:
            if not isinstance(keyword, str) or not keyword or normalize_keyword(keyword) != keyword:
                raise InputValidation(f"keyword {keyword!r} is not normalized")
            if keyword in seen:
                raise InputValidation(f"duplicate keyword {keyword!r}")
            seen.add(keyword)

    def _resume(
        self, run_key: str, app_snapshot: dict, keywords: list[str]
    ) -> tuple[Checkpoint, bool]:
        """Load the checkpoint or start fresh; returns (checkpoint, was_complete)"""
        loaded = self.store.load(run_key)
        self.load_status = loaded.status
        reason = loaded.reason

        if loaded.status is LoadStatus.RESUMED:
            if loaded.checkpoint.keywords == keywords:
                checkpoint = loaded.checkpoint
                if checkpoint.next_index > 0:
                    logger.info(
                        f"Resuming '{run_key}' from keyword "
                        f"{checkpoint.next_index + 1}/{checkpoint.total_keywords}"
                    )
                return checkpoint, checkpoint.is_complete
            reason = "checkpoint was written for a different keyword list"

        if loaded.status is not LoadStatus.FRESH:
            if self.config.corrupt_checkpoint_policy == "abort":
                raise CorruptCheckpoint(run_key, reason or "unknown")
            logger.warning(f"Could not resume '{run_key}' ({reason}), starting fresh")
            self.store.quarantine(run_key)

        return Checkpoint(app_snapshot=app_snapshot, keywords=list(keywords)), False

    async def _score_remaining(self, run_key: str, checkpoint: Checkpoint) -> None:
        total = checkpoint.total_keywords
        start_index = checkpoint.next_index
        if self.progress:
            prior_failures = sum(1 for r in checkpoint.results if not r.succeeded)
            self.progress.start(total, completed=start_index, failed=prior_failures)

        for i in range(start_index, total):
            if i > start_index and self.config.inter_call_delay > 0:
                await asyncio.sleep(self.config.inter_call_delay)

            result = await self.scorer.analyze(checkpoint.keywords[i])

            checkpoint.results.append(result)
            checkpoint.last_analyzed_index = i
            checkpoint.last_updated = datetime.now().isoformat()
            self.store.save(run_key, checkpoint)

            if self.progress:
                self.progress.update(result)

            analyzed = i + 1
            is_last = analyzed == total
            if analyzed % self.config.progress_interval == 0 or is_last:
                failed = sum(1 for r in checkpoint.results if not r.succeeded)
                failed_note = f" ({failed} failed)" if failed else ""
                logger.info(f"Analyzed {analyzed}/{total} keywords...{failed_note} (saved)")
                if self.progress:
                    self.progress.notify(analyzed, total, failed)

            if analyzed % self.config.summary_interval == 0 or is_last:
                self._refresh_summary(run_key, checkpoint)

    def _refresh_summary(self, run_key: str, checkpoint: Checkpoint) -> None:
        """Rewrite summary.txt from the live checkpoint"""
        context = ReportContext(
            app_title=checkpoint.app_snapshot.get("title", run_key),
            report_date=checkpoint.last_updated,
            total_keywords=checkpoint.total_keywords,
            in_progress=not checkpoint.is_complete,
            last_updated=checkpoint.last_updated,
        )
        self._save_summary(run_key, self.aggregator.render(checkpoint.results, context))

    def _save_summary(self, run_key: str, text: str) -> None:
        # summary.txt is derived from the checkpoint, a failed refresh is not fatal
        try:
            self.store.save_summary(run_key, text)
        except PersistenceFailure as e:
            logger.error(f"Could not refresh summary for '{run_key}': {e}")

    def _complete(self, run_key: str, checkpoint: Checkpoint) -> FinalArtifact:
        ranked = finalize(checkpoint.results)
        artifact = FinalArtifact(
            app_snapshot=checkpoint.app_snapshot,
            completed_at=datetime.now().isoformat(),
            total_keywords=checkpoint.total_keywords,
            results=ranked,
            summary=self.aggregator.summarize(ranked),
        )
        path = self.store.save_final(run_key, artifact)

        context = ReportContext(
            app_title=checkpoint.app_snapshot.get("title", run_key),
            report_date=artifact.completed_at,
            total_keywords=artifact.total_keywords,
            competitors_analyzed=self.competitors_analyzed,
            keyword_sources=self.keyword_sources,
        )
        self._save_summary(run_key, self.aggregator.render(ranked, context))

        self.state = RunState.COMPLETED
        logger.info(
            f"Run '{run_key}' completed: {artifact.summary.analyzed} analyzed, "
            f"{artifact.summary.failed} failed. Final results saved to {path}"
        )
        return artifact
