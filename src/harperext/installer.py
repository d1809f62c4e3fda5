from __future__ import annotations

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from harperext import catalog, config, download, github, platform
from harperext.errors import DownloadError, ExtractionError, HarperExtError
from harperext.host import InstallationStatus, StatusCallback

DownloadProgressCallback = Callable[[int | None, int], None]

logger = logging.getLogger(__name__)

# Staging directories younger than this may belong to an install still running elsewhere.
STAGING_GRACE_SECONDS = 3600.0


@dataclass(frozen=True)
class ResolvedBinary:
    path: Path
    env: tuple[tuple[str, str], ...] | None = None


def _notify(on_status: StatusCallback | None, server_id: str, status: InstallationStatus) -> None:
    if on_status is not None:
        on_status(server_id, status)


def installed_versions(work_dir: Path | None = None, server_id: str = "harper-ls") -> list[str]:
    spec = catalog.get_server(server_id)
    root = work_dir or config.work_dir(spec.name)
    if not root.exists():
        return []
    prefix = f"{spec.binary_base}-"
    versions: list[str] = []
    for entry in root.iterdir():
        if not entry.is_dir() or not entry.name.startswith(prefix):
            continue
        if (entry / spec.binary_base).exists() or (entry / f"{spec.binary_base}.exe").exists():
            versions.append(entry.name[len(prefix):])
    return sorted(versions)


def _stage_install(
    url: str,
    root: Path,
    version_dir: Path,
    binary_name: str,
    file_type: download.DownloadedFileType,
    on_download: DownloadProgressCallback | None,
) -> None:
    try:
        staging = Path(tempfile.mkdtemp(dir=str(root), prefix=f".{version_dir.name}."))
    except OSError as exc:
        raise DownloadError("Install failed.", f"Could not create a staging directory in {root}.") from exc
    try:
        download.download_file(url, staging, file_type, on_progress=on_download)
        staged_binary = staging / binary_name
        if not staged_binary.is_file():
            raise ExtractionError(
                "Downloaded archive did not contain the server binary.",
                f"Expected {binary_name} at the archive root.",
            )
        download.make_file_executable(staged_binary)

        if (version_dir / binary_name).exists():
            logger.info("%s was installed concurrently; discarding staged copy", version_dir.name)
            return
        try:
            if version_dir.exists():
                logger.warning("Replacing incomplete install at %s", version_dir)
                download.remove_tree(version_dir)
            os.replace(staging, version_dir)
        except OSError as exc:
            raise DownloadError("Install failed.", f"Could not move binary into {version_dir}.") from exc
    finally:
        _discard(staging)


def _discard(path: Path) -> None:
    try:
        download.remove_tree(path)
    except OSError as exc:
        logger.warning("Could not remove %s: %s", path, exc)


def _is_fresh_staging(entry: Path, binary_base: str, now: float) -> bool:
    if not entry.name.startswith(f".{binary_base}-") or not entry.is_dir():
        return False
    try:
        return now - entry.stat().st_mtime < STAGING_GRACE_SECONDS
    except OSError:
        return False


def _prepare_root(work_dir: Path | None, server_name: str) -> Path:
    root = work_dir or config.work_dir(server_name)
    try:
        if work_dir is None:
            return config.ensure_layout(server_name)
        work_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DownloadError(
            "Install failed.", f"Could not create install directory {root}. Check HARPEREXT_HOME."
        ) from exc
    return work_dir


def prune_versions(root: Path, keep: str, binary_base: str = "harper-ls") -> None:
    now = time.time()
    try:
        entries = list(root.iterdir())
    except OSError as exc:
        logger.warning("Could not list %s: %s", root, exc)
        return
    for entry in entries:
        if entry.name == keep:
            continue
        if _is_fresh_staging(entry, binary_base, now):
            logger.debug("Leaving in-progress staging directory %s", entry)
            continue
        logger.info("Removing stale entry %s", entry)
        try:
            download.remove_tree(entry)
        except OSError as exc:
            logger.warning("Could not remove %s: %s", entry, exc)


def install(
    server_id: str = "harper-ls",
    work_dir: Path | None = None,
    on_status: StatusCallback | None = None,
    on_download: DownloadProgressCallback | None = None,
) -> ResolvedBinary:
    spec = catalog.get_server(server_id)
    _notify(on_status, server_id, InstallationStatus.CHECKING_FOR_UPDATE)

    os_name, arch = platform.current_platform()
    expected_asset = platform.asset_name(os_name, arch, binary_base=spec.binary_base)

    repo = github.configured_repo(env_var=spec.repo_env_var, default_repo=spec.default_repo)
    release = github.fetch_latest_release(repo, require_assets=True, pre_release=False)
    asset = github.find_asset(release, expected_asset)

    root = _prepare_root(work_dir, spec.name)
    version_dir = root / platform.version_dir_name(release.version, binary_base=spec.binary_base)
    binary_name = platform.binary_filename(os_name, binary_base=spec.binary_base)
    binary = version_dir / binary_name

    if binary.exists():
        logger.info("%s %s is already installed", spec.display_name, release.version)
    else:
        _notify(on_status, server_id, InstallationStatus.DOWNLOADING)
        try:
            _stage_install(asset.url, root, version_dir, binary_name, platform.file_type(os_name), on_download)
        except HarperExtError:
            if version_dir.exists() and not binary.exists():
                _discard(version_dir)
            raise
        logger.info("Installed %s %s to %s", spec.display_name, release.version, version_dir)

    prune_versions(root, keep=version_dir.name, binary_base=spec.binary_base)
    return ResolvedBinary(path=binary)
