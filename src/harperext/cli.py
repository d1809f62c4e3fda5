from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.filesize import decimal
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from harperext import catalog, config, installer, runner
from harperext.errors import HarperExtError
from harperext.extension import HarperExtension
from harperext.host import InstallationStatus, LocalWorktree
from harperext.resolver import Resolver

app = typer.Typer(
    no_args_is_help=True,
    help=(
        "Provision and launch the Harper language server.\n\n"
        "Resolution order: [cyan]harper-ls[/cyan] on PATH, then a managed install "
        "under [cyan]HARPEREXT_HOME[/cyan], downloading the latest release when needed."
    ),
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)

DEFAULT_SERVER = "harper-ls"


def _handle_error(err: HarperExtError) -> None:
    err_console.print(f"[red]{err.format()}[/red]")
    raise typer.Exit(code=1)


def _status_printer(server_id: str, status: InstallationStatus) -> None:
    if status is InstallationStatus.CHECKING_FOR_UPDATE:
        err_console.print(f"[dim]{server_id}: checking for update...[/dim]")
    elif status is InstallationStatus.DOWNLOADING:
        err_console.print(f"[dim]{server_id}: downloading...[/dim]")


def _extension() -> HarperExtension:
    return HarperExtension(Resolver(on_status=_status_printer))


def _print_json(value: Any) -> None:
    typer.echo(json.dumps(value, indent=2, sort_keys=True))


def _install_with_progress(server_id: str) -> installer.ResolvedBinary:
    spec = catalog.get_server(server_id)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=err_console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Preparing install...", total=100.0, completed=0.0)

        def on_status(_server_id: str, status: InstallationStatus) -> None:
            if status is InstallationStatus.CHECKING_FOR_UPDATE:
                progress.update(
                    task_id, description=f"Checking for {spec.display_name} updates...", completed=5.0
                )
            elif status is InstallationStatus.DOWNLOADING:
                progress.update(
                    task_id, description=f"Downloading {spec.display_name} release...", completed=10.0
                )

        def on_download(total_bytes: int | None, downloaded_bytes: int) -> None:
            if total_bytes and total_bytes > 0:
                ratio = min(downloaded_bytes / total_bytes, 1.0)
                progress.update(
                    task_id,
                    description=f"Downloading {spec.display_name} release...",
                    completed=10.0 + (ratio * 85.0),
                )
                return
            # Unknown content length: keep moving the bar while showing bytes received.
            task = progress.tasks[task_id]
            next_progress = task.completed + 1.0
            if next_progress > 95.0:
                next_progress = 10.0
            progress.update(
                task_id,
                description=f"Downloading {spec.display_name} release... {decimal(downloaded_bytes)}",
                completed=next_progress,
            )

        binary = installer.install(spec.name, on_status=on_status, on_download=on_download)
        progress.update(task_id, description="Install complete.", completed=100.0)
        return binary


@app.callback()
def main(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log level for diagnostics on stderr (default: HARPEREXT_LOG_LEVEL or WARNING).",
    ),
) -> None:
    try:
        config.configure_logging(log_level, console=err_console)
    except HarperExtError as err:
        _handle_error(err)


@app.command()
def install(
    server: str = typer.Option(DEFAULT_SERVER, "--server", "-s", help="Language server id."),
) -> None:
    """Install the latest Harper release, pruning older versions.

    [bold cyan]Examples[/]
    [green]harperext install[/green]
    [green]HARPEREXT_HOME=/tmp/harper harperext install[/green]
    """
    try:
        binary = _install_with_progress(server)
    except HarperExtError as err:
        _handle_error(err)
    console.print(f"Installed {binary.path.parent.name}.")
    console.print(f"Binary path: {binary.path}")


@app.command("list")
def list_versions(
    server: str = typer.Option(DEFAULT_SERVER, "--server", "-s", help="Language server id."),
) -> None:
    """List installed versions."""
    try:
        spec = catalog.get_server(server)
    except HarperExtError as err:
        _handle_error(err)
    versions = installer.installed_versions(server_id=spec.name)
    if not versions:
        console.print("No installed versions. Run: harperext install")
        return
    for version in versions:
        console.print(version)


@app.command()
def which(
    server: str = typer.Option(DEFAULT_SERVER, "--server", "-s", help="Language server id."),
) -> None:
    """Print the resolved server binary path."""
    try:
        command = _extension().get_command(server, LocalWorktree(Path.cwd()))
    except HarperExtError as err:
        _handle_error(err)
    typer.echo(command.command)


@app.command()
def command(
    server: str = typer.Option(DEFAULT_SERVER, "--server", "-s", help="Language server id."),
    show_env: bool = typer.Option(False, "--env", help="Include the environment passed to the server."),
) -> None:
    """Print the launch command as JSON."""
    try:
        resolved = _extension().get_command(server, LocalWorktree(Path.cwd()))
    except HarperExtError as err:
        _handle_error(err)
    payload: dict[str, Any] = {"command": resolved.command, "args": resolved.args}
    if show_env:
        payload["env"] = dict(resolved.env)
    _print_json(payload)


@app.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_extra_args": True,
    }
)
def serve(
    ctx: typer.Context,
    server: str = typer.Option(DEFAULT_SERVER, "--server", "-s", help="Language server id."),
) -> None:
    """Resolve the server and run it over stdio, forwarding extra args."""
    try:
        resolved = _extension().get_command(server, LocalWorktree(Path.cwd()))
        code = runner.launch(resolved, cwd=Path.cwd(), extra_args=list(ctx.args))
    except HarperExtError as err:
        _handle_error(err)
    raise typer.Exit(code)


@app.command("init-options")
def init_options(
    server: str = typer.Option(DEFAULT_SERVER, "--server", "-s", help="Language server id."),
) -> None:
    """Print initialization options from the worktree settings."""
    try:
        value = HarperExtension().get_initialization_options(server, LocalWorktree(Path.cwd()))
    except HarperExtError as err:
        _handle_error(err)
    _print_json(value)


@app.command("workspace-config")
def workspace_config(
    server: str = typer.Option(DEFAULT_SERVER, "--server", "-s", help="Language server id."),
) -> None:
    """Print workspace configuration from the worktree settings."""
    try:
        value = HarperExtension().get_workspace_configuration(server, LocalWorktree(Path.cwd()))
    except HarperExtError as err:
        _handle_error(err)
    _print_json(value)
