from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from harperext.errors import HarperExtError

DEFAULT_BASE_DIR = Path.home() / ".harperext"
DEFAULT_LOG_LEVEL = "WARNING"
SETTINGS_FILENAME = ".harperext.json"


def base_dir() -> Path:
    return Path(os.environ.get("HARPEREXT_HOME", DEFAULT_BASE_DIR)).expanduser()


def work_dir(server_name: str = "harper-ls") -> Path:
    """Directory holding version directories; anything else in it gets pruned."""
    return base_dir() / server_name


def ensure_layout(server_name: str = "harper-ls") -> Path:
    path = work_dir(server_name)
    path.mkdir(parents=True, exist_ok=True)
    return path


def github_token() -> str | None:
    token = os.environ.get("HARPEREXT_GITHUB_TOKEN", "").strip()
    return token or None


def log_level() -> str:
    return os.environ.get("HARPEREXT_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL


def configure_logging(level: str | None = None, console: Console | None = None) -> None:
    resolved = (level or log_level()).upper()
    numeric = logging.getLevelName(resolved)
    if not isinstance(numeric, int):
        raise HarperExtError(f"Unknown log level: {resolved}.", "Use DEBUG, INFO, WARNING, or ERROR.")

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    root = logging.getLogger("harperext")
    root.handlers = [handler]
    root.setLevel(numeric)
    root.propagate = False


def settings_path(root: Path) -> Path:
    return root / SETTINGS_FILENAME


def load_settings(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise HarperExtError(
            f"Corrupt settings file: {path}.", "Fix the JSON syntax or delete the file."
        ) from exc
    if not isinstance(raw, dict):
        return {}
    return raw


def lsp_settings(settings: dict[str, Any], server_id: str) -> dict[str, Any] | None:
    lsp = settings.get("lsp")
    if not isinstance(lsp, dict):
        return None
    block = lsp.get(server_id)
    if not isinstance(block, dict):
        return None
    return block
