"""
Pipeline-level exceptions

Per-keyword provider failures never reach this level; they are recorded in
the keyword result. Everything here aborts (or refuses to start) a run.
"""


class KeywordResearchError(Exception):
    """Base exception for the keyword research pipeline"""

    pass


class InputValidation(KeywordResearchError):
    """Run input rejected before anything was written"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid input: {detail}")


class PersistenceFailure(KeywordResearchError):
    """Checkpoint or final artifact could not be written"""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to persist {path}: {cause}")


class CorruptCheckpoint(KeywordResearchError):
    """Existing checkpoint is unreadable or incompatible with this run"""

    def __init__(self, run_key: str, reason: str):
        self.run_key = run_key
        self.reason = reason
        super().__init__(f"Checkpoint for '{run_key}' cannot be resumed: {reason}")


class RunLocked(KeywordResearchError):
    """Another runner holds the lock for this run key"""

    def __init__(self, run_key: str, lock_path: str):
        self.run_key = run_key
        self.lock_path = lock_path
        super().__init__(
            f"Run '{run_key}' is locked by another process ({lock_path})"
        )
