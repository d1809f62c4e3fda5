from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from harperext import catalog, installer
from harperext.host import StatusCallback, Worktree
from harperext.installer import DownloadProgressCallback, ResolvedBinary

logger = logging.getLogger(__name__)


@dataclass
class InstallationState:
    """Binary installed by this process, if any. Lives as long as the resolver."""

    cached_binary_path: Path | None = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class Resolver:
    """Finds a runnable language server binary, installing one when needed.

    Lookup order is the worktree's PATH, then a binary this process already
    installed (if it is still on disk), then a fresh install.
    """

    def __init__(
        self,
        work_dir: Path | None = None,
        on_status: StatusCallback | None = None,
        on_download: DownloadProgressCallback | None = None,
        state: InstallationState | None = None,
    ) -> None:
        self.work_dir = work_dir
        self.on_status = on_status
        self.on_download = on_download
        self.state = state or InstallationState()

    def resolve(self, server_id: str, worktree: Worktree) -> ResolvedBinary:
        spec = catalog.get_server(server_id)

        found = worktree.which(spec.binary_base)
        if found:
            logger.debug("Using %s from PATH: %s", spec.binary_base, found)
            return ResolvedBinary(path=Path(found), env=tuple(worktree.shell_env()))

        with self.state.lock:
            cached = self.state.cached_binary_path
            if cached is not None and cached.exists():
                return ResolvedBinary(path=cached)
            if cached is not None:
                logger.info("Cached binary %s disappeared; reinstalling", cached)

            binary = installer.install(
                spec.name,
                work_dir=self.work_dir,
                on_status=self.on_status,
                on_download=self.on_download,
            )
            self.state.cached_binary_path = binary.path
            return binary
