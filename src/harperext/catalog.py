from __future__ import annotations

from dataclasses import dataclass

from harperext.errors import UnknownServerError


@dataclass(frozen=True)
class ServerSpec:
    name: str
    display_name: str
    binary_base: str
    default_repo: str
    repo_env_var: str


SUPPORTED_SERVERS: dict[str, ServerSpec] = {
    "harper-ls": ServerSpec(
        name="harper-ls",
        display_name="Harper",
        binary_base="harper-ls",
        default_repo="elijah-potter/harper",
        repo_env_var="HARPEREXT_GITHUB_REPO",
    ),
}


def get_server(server_id: str) -> ServerSpec:
    normalized = server_id.lower().strip()
    spec = SUPPORTED_SERVERS.get(normalized)
    if spec is None:
        options = ", ".join(sorted(SUPPORTED_SERVERS))
        raise UnknownServerError(f"Unknown language server: {server_id}.", f"Supported servers: {options}")
    return spec
