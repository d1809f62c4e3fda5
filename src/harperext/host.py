from __future__ import annotations

import enum
import os
import shutil
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

from harperext import config


class InstallationStatus(enum.Enum):
    CHECKING_FOR_UPDATE = "checking_for_update"
    DOWNLOADING = "downloading"


StatusCallback = Callable[[str, InstallationStatus], None]


class Worktree(Protocol):
    """What the editor host exposes about a project directory."""

    def which(self, binary_name: str) -> str | None: ...

    def shell_env(self) -> list[tuple[str, str]]: ...

    def lsp_settings(self, server_id: str) -> dict[str, Any] | None: ...


class LocalWorktree:
    """Worktree backed by a directory on disk and an environment mapping."""

    def __init__(
        self,
        root: Path,
        settings_file: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.root = root
        self.settings_file = settings_file or config.settings_path(root)
        self._env = dict(os.environ if env is None else env)

    def which(self, binary_name: str) -> str | None:
        return shutil.which(binary_name, path=self._env.get("PATH", ""))

    def shell_env(self) -> list[tuple[str, str]]:
        return sorted(self._env.items())

    def lsp_settings(self, server_id: str) -> dict[str, Any] | None:
        return config.lsp_settings(config.load_settings(self.settings_file), server_id)
