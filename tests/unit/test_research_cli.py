"""Unit tests for the research command line entry point."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import pytest

import research


def _write_config(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"pipeline": {"results_dir": str(tmp_path / "results")}}),
        encoding="utf-8",
    )
    return path


@pytest.mark.asyncio
async def test_keywords_command_without_usable_keywords_writes_nothing(
    tmp_path: Path, monkeypatch: Any
) -> None:
    config = _write_config(tmp_path)
    monkeypatch.setattr(
        sys, "argv", ["research.py", "--config", str(config), "keywords", "notes", "   "]
    )

    with pytest.raises(SystemExit) as exc_info:
        await research.main()

    assert exc_info.value.code == 1
    assert not (tmp_path / "results").exists()
