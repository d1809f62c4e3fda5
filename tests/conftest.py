from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / ".harperext"
    monkeypatch.setenv("HARPEREXT_HOME", str(home))
    monkeypatch.delenv("HARPEREXT_GITHUB_REPO", raising=False)
    monkeypatch.delenv("HARPEREXT_GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("HARPEREXT_LOG_LEVEL", raising=False)
    return home
