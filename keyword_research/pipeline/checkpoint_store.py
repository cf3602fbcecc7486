"""
Checkpoint and artifact persistence for research runs

Layout per run key::

    <results_dir>/<run_key>/progress.json   checkpoint (rewritten per keyword)
    <results_dir>/<run_key>/final.json      ranked final artifact
    <results_dir>/<run_key>/summary.txt     human-readable report
    <results_dir>/<run_key>/run.lock        held while a runner owns the key
"""

import fcntl
import json
import logging
import os
import re
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterator

from keyword_research.pipeline.exceptions import InputValidation, PersistenceFailure, RunLocked
from keyword_research.pipeline.models import Checkpoint, FinalArtifact

logger = logging.getLogger(__name__)

CHECKPOINT_FILE = "progress.json"
FINAL_FILE = "final.json"
SUMMARY_FILE = "summary.txt"
LOCK_FILE = "run.lock"

_RUN_KEY = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def make_run_key(app_title: str) -> str:
    """Folder-safe run key derived from an app title"""
    key = re.sub(r"[^a-zA-Z0-9]", "_", app_title)[:30]
    if not key.strip("_"):
        raise InputValidation(f"cannot derive a run key from app title {app_title!r}")
    return key


def validate_run_key(run_key: str) -> None:
    if not isinstance(run_key, str) or not _RUN_KEY.match(run_key):
        raise InputValidation(
            f"run key must be 1-64 letters, digits, '_' or '-', got {run_key!r}"
        )


class LoadStatus(Enum):
    FRESH = "fresh"  # no checkpoint on disk
    RESUMED = "resumed"  # valid checkpoint loaded
    CORRUPT = "corrupt"  # file exists but cannot be used


@dataclass
class LoadResult:
    status: LoadStatus
    checkpoint: Checkpoint | None = None
    reason: str | None = None


class CheckpointStore:
    """File-backed store for checkpoints and run artifacts"""

    def __init__(self, results_dir: Path = Path("results")):
        self.results_dir = Path(results_dir)

    def run_dir(self, run_key: str) -> Path:
        validate_run_key(run_key)
        return self.results_dir / run_key

    def checkpoint_path(self, run_key: str) -> Path:
        return self.run_dir(run_key) / CHECKPOINT_FILE

    def final_path(self, run_key: str) -> Path:
        return self.run_dir(run_key) / FINAL_FILE

    def summary_path(self, run_key: str) -> Path:
        return self.run_dir(run_key) / SUMMARY_FILE

    # ── checkpoint ────────────────────────────────────────────────────────

    def load(self, run_key: str) -> LoadResult:
        """Load the checkpoint for a run key without ever raising on bad data"""
        path = self.checkpoint_path(run_key)
        if not path.exists():
            return LoadResult(LoadStatus.FRESH)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            checkpoint = Checkpoint.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Checkpoint {path} is unusable: {e}")
            return LoadResult(LoadStatus.CORRUPT, reason=str(e) or type(e).__name__)

        return LoadResult(LoadStatus.RESUMED, checkpoint=checkpoint)

    def save(self, run_key: str, checkpoint: Checkpoint) -> None:
        """Durably replace the checkpoint; raises PersistenceFailure"""
        self._write_json(self.checkpoint_path(run_key), checkpoint.to_dict())

    def quarantine(self, run_key: str) -> Path | None:
        """Move an unusable checkpoint aside so a fresh run cannot overwrite it"""
        path = self.checkpoint_path(run_key)
        if not path.exists():
            return None

        target = path.with_name(f"{path.name}.corrupt-{datetime.now().strftime('%Y%m%d_%H%M%S')}")
        try:
            os.replace(path, target)
        except OSError as e:
            raise PersistenceFailure(str(path), e) from e
        logger.warning(f"Moved unusable checkpoint to {target}")
        return target

    # ── final artifact and report ─────────────────────────────────────────

    def load_final(self, run_key: str) -> FinalArtifact | None:
        path = self.final_path(run_key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return FinalArtifact.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Final artifact {path} is unusable: {e}")
            return None

    def save_final(self, run_key: str, artifact: FinalArtifact) -> Path:
        path = self.final_path(run_key)
        self._write_json(path, artifact.to_dict())
        return path

    def save_summary(self, run_key: str, text: str) -> Path:
        path = self.summary_path(run_key)
        self._write_text(path, text)
        return path

    # ── locking ───────────────────────────────────────────────────────────

    @contextmanager
    def lock(self, run_key: str) -> Iterator[Path]:
        """Hold the exclusive lock for a run key

        The lock is an ``flock`` on ``run.lock``; the kernel drops it when the
        owning process dies, so a lock file left by a crashed run is reused.
        """
        run_dir = self.run_dir(run_key)
        try:
            run_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceFailure(str(run_dir), e) from e

        lock_path = run_dir / LOCK_FILE
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_RDWR)
        except OSError as e:
            raise PersistenceFailure(str(lock_path), e) from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            # The previous owner may have unlinked the file between our open and flock
            if os.fstat(fd).st_ino != os.stat(lock_path).st_ino:
                raise BlockingIOError(f"{lock_path} was replaced")
        except (BlockingIOError, FileNotFoundError):
            os.close(fd)
            raise RunLocked(run_key, str(lock_path)) from None
        except OSError as e:
            os.close(fd)
            raise PersistenceFailure(str(lock_path), e) from e

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()} {datetime.now().isoformat()}\n".encode("utf-8"))

        try:
            yield lock_path
        finally:
            lock_path.unlink(missing_ok=True)
            os.close(fd)

    # ── atomic writes ─────────────────────────────────────────────────────

    def _write_json(self, path: Path, data: dict) -> None:
        try:
            text = json.dumps(data, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceFailure(str(path), e) from e
        self._write_text(path, text)

    def _write_text(self, path: Path, text: str) -> None:
        """Write to a temp sibling, fsync, then atomically replace the target"""
        tmp = path.with_name(f"{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise PersistenceFailure(str(path), e) from e
