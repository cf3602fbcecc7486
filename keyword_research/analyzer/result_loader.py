"""
Result loader for reading stored research runs
"""

from dataclasses import dataclass
from datetime import datetime

from keyword_research.analyzer.models import ReportContext
from keyword_research.pipeline.checkpoint_store import CheckpointStore, LoadStatus
from keyword_research.pipeline.models import KeywordResult


@dataclass
class LoadedRun:
    """Results of a stored run plus the context to render them"""

    run_key: str
    source: str  # "final" | "checkpoint"
    results: list[KeywordResult]
    context: ReportContext


class ResultLoader:
    """Loads results from the final artifact (preferred) or the live checkpoint"""

    def __init__(self, store: CheckpointStore):
        self.store = store

    def load_run(self, run_key: str) -> LoadedRun:
        final = self.store.load_final(run_key)
        if final is not None:
            return LoadedRun(
                run_key=run_key,
                source="final",
                results=final.results,
                context=ReportContext(
                    app_title=final.app_snapshot.get("title", run_key),
                    report_date=final.completed_at,
                    total_keywords=final.total_keywords,
                ),
            )

        loaded = self.store.load(run_key)
        if loaded.status is LoadStatus.FRESH:
            raise ValueError(f"No results found for run '{run_key}'")
        if loaded.status is LoadStatus.CORRUPT:
            raise ValueError(f"Checkpoint for run '{run_key}' is unreadable: {loaded.reason}")

        checkpoint = loaded.checkpoint
        return LoadedRun(
            run_key=run_key,
            source="checkpoint",
            results=checkpoint.results,
            context=ReportContext(
                app_title=checkpoint.app_snapshot.get("title", run_key),
                report_date=checkpoint.last_updated or datetime.now().isoformat(),
                total_keywords=checkpoint.total_keywords,
                in_progress=not checkpoint.is_complete,
                last_updated=checkpoint.last_updated,
            ),
        )
