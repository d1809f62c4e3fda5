from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from harperext.errors import HarperExtError
from harperext.extension import Command

logger = logging.getLogger(__name__)


def launch_env(command: Command) -> dict[str, str]:
    env = dict(os.environ)
    env.update(command.env)
    return env


def launch(command: Command, cwd: Path | None = None, extra_args: list[str] | None = None) -> int:
    """Run the server attached to this process's stdio and return its exit code."""
    argv = [command.command, *command.args, *(extra_args or [])]
    logger.debug("Launching %s", argv)
    try:
        proc = subprocess.run(argv, cwd=cwd, env=launch_env(command))
    except OSError as exc:
        raise HarperExtError(f"Failed to start {command.command}.", str(exc)) from exc
    return proc.returncode
