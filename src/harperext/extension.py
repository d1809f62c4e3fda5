from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from harperext import catalog
from harperext.errors import PathEncodingError
from harperext.host import Worktree
from harperext.resolver import Resolver

SERVER_ARGS = ["--stdio"]


@dataclass(frozen=True)
class Command:
    command: str
    args: list[str] = field(default_factory=list)
    env: list[tuple[str, str]] = field(default_factory=list)


class HarperExtension:
    """Entry points the editor host calls when starting harper-ls."""

    def __init__(self, resolver: Resolver | None = None) -> None:
        self.resolver = resolver or Resolver()

    def get_command(self, server_id: str, worktree: Worktree) -> Command:
        binary = self.resolver.resolve(server_id, worktree)
        command = str(binary.path)
        try:
            command.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise PathEncodingError(
                "Failed to convert binary path to string.", f"{command!r} is not valid UTF-8."
            ) from exc
        return Command(command=command, args=list(SERVER_ARGS), env=list(binary.env or ()))

    def _setting(self, server_id: str, worktree: Worktree, key: str) -> Any:
        spec = catalog.get_server(server_id)
        block = worktree.lsp_settings(spec.name)
        if block is None or block.get(key) is None:
            return {}
        return block[key]

    def get_initialization_options(self, server_id: str, worktree: Worktree) -> Any:
        return self._setting(server_id, worktree, "initialization_options")

    def get_workspace_configuration(self, server_id: str, worktree: Worktree) -> Any:
        return self._setting(server_id, worktree, "settings")
