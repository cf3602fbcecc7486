"""Unit tests for the resumable batch runner."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any

import pytest

from keyword_research.pipeline import batch_runner as batch_runner_module
from keyword_research.pipeline.batch_runner import BatchRunner, RunState
from keyword_research.pipeline.checkpoint_store import CheckpointStore, LoadStatus
from keyword_research.pipeline.config import PipelineConfig
from keyword_research.pipeline.exceptions import (
    CorruptCheckpoint,
    InputValidation,
    PersistenceFailure,
    RunLocked,
)
from keyword_research.pipeline.models import Checkpoint, Recommendation
from keyword_research.pipeline.scorer import KeywordScorer
from provider.core.exceptions import APIError

KEYWORDS = [f"keyword {i}" for i in range(10)]
APP = {"app_id": 42, "title": "Quick Notes"}


class _FakeProvider:
    """Traffic rises with the keyword's position so the ranking is predictable"""

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def analyze_keyword(self, keyword: str) -> dict:
        self.calls.append(keyword)
        if keyword in self.fail_on:
            raise APIError(500, "Internal Server Error")
        position = int(keyword.rsplit(" ", 1)[1])
        return {
            "keyword": keyword,
            "traffic": {"score": 1.0 + position * 0.5},
            "difficulty": {"score": 3.0},
        }


class _ExplodingProvider:
    async def analyze_keyword(self, keyword: str) -> dict:
        raise AssertionError(f"provider should not be called, got '{keyword}'")


class _RecordingProgress:
    def __init__(self) -> None:
        self.started: tuple[int, int, int] | None = None
        self.updates: list[str] = []
        self.notifications: list[tuple[int, int, int]] = []

    def start(self, total: int, completed: int = 0, failed: int = 0) -> None:
        self.started = (total, completed, failed)

    def update(self, result: Any) -> None:
        self.updates.append(result.keyword)

    def notify(self, analyzed: int, total: int, failed: int) -> None:
        self.notifications.append((analyzed, total, failed))


def _runner(
    tmp_path: Path,
    provider: Any,
    progress: Any = None,
    **config: Any,
) -> BatchRunner:
    config.setdefault("inter_call_delay", 0)
    return BatchRunner(
        KeywordScorer(provider),
        CheckpointStore(tmp_path),
        config=PipelineConfig(results_dir=tmp_path, **config),
        progress=progress,
    )


async def _partial_checkpoint(tmp_path: Path, analyzed: int) -> CheckpointStore:
    """Score the first ``analyzed`` keywords and store them as a checkpoint"""
    scorer = KeywordScorer(_FakeProvider())
    results = [await scorer.analyze(k) for k in KEYWORDS[:analyzed]]
    store = CheckpointStore(tmp_path)
    store.save(
        "notes",
        Checkpoint(
            app_snapshot=APP,
            keywords=list(KEYWORDS),
            last_analyzed_index=analyzed - 1,
            results=results,
            last_updated="2026-03-01T10:00:00",
        ),
    )
    return store


def _stored_results(tmp_path: Path) -> list[dict]:
    with open(tmp_path / "notes" / "progress.json", "r", encoding="utf-8") as f:
        return json.load(f)["results"]


@pytest.mark.asyncio
async def test_fresh_run_scores_everything_and_ranks(tmp_path: Path) -> None:
    provider = _FakeProvider()
    runner = _runner(tmp_path, provider)

    artifact = await runner.run("notes", APP, KEYWORDS)

    assert provider.calls == KEYWORDS
    assert runner.state is RunState.COMPLETED
    assert runner.load_status is LoadStatus.FRESH
    assert artifact.total_keywords == 10
    assert [r.keyword for r in artifact.results] == list(reversed(KEYWORDS))
    assert (tmp_path / "notes" / "final.json").exists()
    assert (tmp_path / "notes" / "summary.txt").exists()
    assert not (tmp_path / "notes" / "run.lock").exists()


@pytest.mark.asyncio
async def test_resume_scores_only_remaining_keywords(tmp_path: Path) -> None:
    await _partial_checkpoint(tmp_path, analyzed=5)
    before = _stored_results(tmp_path)
    provider = _FakeProvider()
    progress = _RecordingProgress()

    artifact = await _runner(tmp_path, provider, progress=progress).run("notes", APP, KEYWORDS)

    assert provider.calls == KEYWORDS[5:]
    assert progress.started == (10, 5, 0)
    assert len(artifact.results) == 10
    after = _stored_results(tmp_path)
    assert len(after) == 10
    assert after[:5] == before


@pytest.mark.asyncio
async def test_one_failing_keyword_does_not_stop_the_run(tmp_path: Path) -> None:
    keywords = KEYWORDS[:5]
    provider = _FakeProvider(fail_on=("keyword 2",))
    runner = _runner(tmp_path, provider)

    artifact = await runner.run("notes", APP, keywords)

    assert runner.state is RunState.COMPLETED
    assert len(artifact.results) == 5
    assert sum(1 for r in artifact.results if r.succeeded) == 4
    failed = artifact.results[-1]
    assert failed.keyword == "keyword 2"
    assert failed.recommendation is Recommendation.ANALYSIS_FAILED
    assert failed.error == "API error 500: Internal Server Error"
    assert artifact.summary.failed == 1


@pytest.mark.asyncio
async def test_checkpoint_write_failure_aborts_and_keeps_previous_state(
    tmp_path: Path, monkeypatch: Any
) -> None:
    real_replace = os.replace
    calls = {"count": 0}

    def _flaky_replace(src: Any, dst: Any) -> None:
        calls["count"] += 1
        if calls["count"] == 3:
            raise OSError(5, "Input/output error")
        real_replace(src, dst)

    monkeypatch.setattr(os, "replace", _flaky_replace)
    provider = _FakeProvider()
    runner = _runner(tmp_path, provider)

    with pytest.raises(PersistenceFailure):
        await runner.run("notes", APP, KEYWORDS[:5])

    assert runner.state is RunState.ABORTED
    assert provider.calls == KEYWORDS[:3]
    assert [r["keyword"] for r in _stored_results(tmp_path)] == KEYWORDS[:2]
    assert not (tmp_path / "notes" / "final.json").exists()
    assert not (tmp_path / "notes" / "run.lock").exists()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("run_key", "keywords"),
    [
        ("notes", []),
        ("notes", ["Note Taker"]),
        ("notes", ["notes", "notes"]),
        ("notes", ["  padded"]),
        ("bad key", ["notes"]),
    ],
)
async def test_invalid_input_fails_before_writing(
    tmp_path: Path, run_key: str, keywords: list[str]
) -> None:
    provider = _FakeProvider()

    with pytest.raises(InputValidation):
        await _runner(tmp_path, provider).run(run_key, APP, keywords)

    assert provider.calls == []
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_corrupt_checkpoint_is_quarantined_and_restarted(tmp_path: Path) -> None:
    run_dir = tmp_path / "notes"
    run_dir.mkdir()
    (run_dir / "progress.json").write_text("{truncated", encoding="utf-8")
    provider = _FakeProvider()
    runner = _runner(tmp_path, provider)

    await runner.run("notes", APP, KEYWORDS[:3])

    assert runner.load_status is LoadStatus.CORRUPT
    assert provider.calls == KEYWORDS[:3]
    quarantined = list(run_dir.glob("progress.json.corrupt-*"))
    assert len(quarantined) == 1
    assert quarantined[0].read_text(encoding="utf-8") == "{truncated"


@pytest.mark.asyncio
async def test_corrupt_checkpoint_aborts_under_abort_policy(tmp_path: Path) -> None:
    run_dir = tmp_path / "notes"
    run_dir.mkdir()
    (run_dir / "progress.json").write_text("{truncated", encoding="utf-8")
    provider = _FakeProvider()
    runner = _runner(tmp_path, provider, corrupt_checkpoint_policy="abort")

    with pytest.raises(CorruptCheckpoint):
        await runner.run("notes", APP, KEYWORDS[:3])

    assert runner.state is RunState.ABORTED
    assert provider.calls == []
    assert (run_dir / "progress.json").read_text(encoding="utf-8") == "{truncated"


@pytest.mark.asyncio
async def test_checkpoint_for_other_keywords_is_not_resumed(tmp_path: Path) -> None:
    await _partial_checkpoint(tmp_path, analyzed=5)
    provider = _FakeProvider()
    keywords = ["keyword 7", "keyword 8"]

    artifact = await _runner(tmp_path, provider).run("notes", APP, keywords)

    assert provider.calls == keywords
    assert artifact.total_keywords == 2
    assert list((tmp_path / "notes").glob("progress.json.corrupt-*"))


@pytest.mark.asyncio
async def test_completed_run_reuses_final_artifact(tmp_path: Path) -> None:
    first = await _runner(tmp_path, _FakeProvider()).run("notes", APP, KEYWORDS[:3])
    final_bytes = (tmp_path / "notes" / "final.json").read_bytes()

    runner = _runner(tmp_path, _ExplodingProvider())
    second = await runner.run("notes", APP, KEYWORDS[:3])

    assert second == first
    assert runner.state is RunState.COMPLETED
    assert (tmp_path / "notes" / "final.json").read_bytes() == final_bytes


@pytest.mark.asyncio
async def test_complete_checkpoint_without_final_artifact_is_finalized(tmp_path: Path) -> None:
    await _partial_checkpoint(tmp_path, analyzed=10)

    artifact = await _runner(tmp_path, _ExplodingProvider()).run("notes", APP, KEYWORDS)

    assert len(artifact.results) == 10
    assert (tmp_path / "notes" / "final.json").exists()


@pytest.mark.asyncio
async def test_progress_and_summary_intervals(tmp_path: Path, monkeypatch: Any) -> None:
    progress = _RecordingProgress()
    runner = _runner(
        tmp_path,
        _FakeProvider(fail_on=("keyword 0",)),
        progress=progress,
        progress_interval=2,
        summary_interval=3,
    )
    summaries: list[str] = []
    monkeypatch.setattr(
        runner.store, "save_summary", lambda run_key, text: summaries.append(text)
    )

    await runner.run("notes", APP, KEYWORDS[:5])

    assert progress.updates == KEYWORDS[:5]
    assert progress.notifications == [(2, 5, 1), (4, 5, 1), (5, 5, 1)]
    # after keyword 3, after keyword 5 (last), then the final report
    assert len(summaries) == 3
    assert "📈 ANALYSIS IN PROGRESS" in summaries[0]
    assert "🎯 NEXT STEPS" in summaries[-1]


@pytest.mark.asyncio
async def test_summary_write_failure_is_not_fatal(tmp_path: Path, monkeypatch: Any) -> None:
    runner = _runner(tmp_path, _FakeProvider())

    def _failing_summary(run_key: str, text: str) -> None:
        raise PersistenceFailure("summary.txt", OSError(13, "Permission denied"))

    monkeypatch.setattr(runner.store, "save_summary", _failing_summary)

    artifact = await runner.run("notes", APP, KEYWORDS[:3])

    assert runner.state is RunState.COMPLETED
    assert artifact.summary.analyzed == 3


@pytest.mark.asyncio
async def test_locked_run_key_is_rejected(tmp_path: Path) -> None:
    provider = _FakeProvider()
    runner = _runner(tmp_path, provider)

    with runner.store.lock("notes"):
        with pytest.raises(RunLocked):
            await runner.run("notes", APP, KEYWORDS[:3])

    assert runner.state is RunState.ABORTED
    assert provider.calls == []


@pytest.mark.asyncio
async def test_lock_left_by_crashed_run_does_not_block_resume(tmp_path: Path) -> None:
    await _partial_checkpoint(tmp_path, analyzed=2)
    (tmp_path / "notes" / "run.lock").write_text(
        "999999 2026-03-01T10:00:00\n", encoding="utf-8"
    )
    provider = _FakeProvider()
    runner = _runner(tmp_path, provider)

    artifact = await runner.run("notes", APP, KEYWORDS)

    assert runner.load_status is LoadStatus.RESUMED
    assert provider.calls == KEYWORDS[2:]
    assert len(artifact.results) == 10
    assert not (tmp_path / "notes" / "run.lock").exists()


class _CancellingProvider:
    async def analyze_keyword(self, keyword: str) -> dict:
        raise asyncio.CancelledError()


class _BrokenProgress(_RecordingProgress):
    def update(self, result: Any) -> None:
        raise RuntimeError("progress display closed")


@pytest.mark.asyncio
async def test_cancelled_run_is_marked_aborted(tmp_path: Path) -> None:
    runner = _runner(tmp_path, _CancellingProvider())

    with pytest.raises(asyncio.CancelledError):
        await runner.run("notes", APP, KEYWORDS[:3])

    assert runner.state is RunState.ABORTED
    assert not (tmp_path / "notes" / "run.lock").exists()


@pytest.mark.asyncio
async def test_progress_hook_error_marks_run_aborted(tmp_path: Path) -> None:
    runner = _runner(tmp_path, _FakeProvider(), progress=_BrokenProgress())

    with pytest.raises(RuntimeError, match="progress display closed"):
        await runner.run("notes", APP, KEYWORDS[:3])

    assert runner.state is RunState.ABORTED
    assert len(_stored_results(tmp_path)) == 1


@pytest.mark.asyncio
async def test_calls_are_spaced_by_inter_call_delay(tmp_path: Path, monkeypatch: Any) -> None:
    delays: list[float] = []

    async def _fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(batch_runner_module.asyncio, "sleep", _fake_sleep)

    await _runner(tmp_path, _FakeProvider(), inter_call_delay=0.5).run(
        "notes", APP, KEYWORDS[:3]
    )

    assert delays == [0.5, 0.5]


@pytest.mark.asyncio
async def test_final_report_includes_keyword_sources(tmp_path: Path) -> None:
    runner = _runner(tmp_path, _FakeProvider())
    runner.keyword_sources = {"Main App Keywords": 2, "Autocomplete Suggestions": 1}
    runner.competitors_analyzed = 4

    await runner.run("notes", APP, KEYWORDS[:3])

    report = (tmp_path / "notes" / "summary.txt").read_text(encoding="utf-8")
    assert "🔍 Competitors Analyzed: 4" in report
    assert "Autocomplete Suggestions: 1" in report
