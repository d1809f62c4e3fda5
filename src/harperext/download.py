from __future__ import annotations

import enum
import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Callable

import httpx

from harperext.errors import BinaryPermissionError, DownloadError, ExtractionError

logger = logging.getLogger(__name__)


class DownloadedFileType(enum.Enum):
    GZIP_TAR = "gzip_tar"
    ZIP = "zip"


def _fetch_to(
    url: str,
    target: Path,
    timeout: float,
    on_progress: Callable[[int | None, int], None] | None,
) -> None:
    with httpx.stream("GET", url, timeout=timeout, follow_redirects=True) as response:
        response.raise_for_status()
        total_header = response.headers.get("Content-Length")
        total_bytes = int(total_header) if total_header and total_header.isdigit() else None
        downloaded_bytes = 0
        if on_progress is not None:
            on_progress(total_bytes, downloaded_bytes)
        with target.open("wb") as fh:
            for chunk in response.iter_bytes():
                if chunk:
                    fh.write(chunk)
                    downloaded_bytes += len(chunk)
                    if on_progress is not None:
                        on_progress(total_bytes, downloaded_bytes)
            fh.flush()
            os.fsync(fh.fileno())


def extract_archive(archive: Path, destination: Path, file_type: DownloadedFileType) -> None:
    destination.mkdir(parents=True, exist_ok=True)
    try:
        if file_type is DownloadedFileType.ZIP:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(destination)
        else:
            with tarfile.open(archive, "r:gz") as tar:
                tar.extractall(destination, filter="data")
    except (tarfile.TarError, zipfile.BadZipFile, EOFError) as exc:
        raise ExtractionError("Failed to extract archive.", f"{archive.name} is corrupt or unsafe.") from exc
    except OSError as exc:
        raise ExtractionError("Failed to extract archive.", f"Could not write into {destination}.") from exc


def download_file(
    url: str,
    destination: Path,
    file_type: DownloadedFileType,
    timeout: float = 120.0,
    on_progress: Callable[[int | None, int], None] | None = None,
) -> None:
    """Download an archive from ``url`` and unpack it into ``destination``."""
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=str(destination.parent), prefix=".download.", suffix=".tmp")
        os.close(fd)
    except OSError as exc:
        raise DownloadError(
            "Failed to download Harper binary.", f"Could not create a temporary file in {destination.parent}."
        ) from exc
    temp_path = Path(temp_name)

    try:
        logger.info("Downloading %s", url)
        try:
            _fetch_to(url, temp_path, timeout, on_progress)
        except httpx.HTTPError as exc:
            raise DownloadError("Failed to download Harper binary.", f"Could not fetch: {url}") from exc
        except OSError as exc:
            raise DownloadError("Failed to download Harper binary.", "Could not write the archive to disk.") from exc
        extract_archive(temp_path, destination, file_type)
    finally:
        if temp_path.exists():
            temp_path.unlink()


def make_file_executable(path: Path) -> None:
    try:
        path.chmod(path.stat().st_mode | 0o111)
    except OSError as exc:
        raise BinaryPermissionError("Failed to make binary executable.", str(path)) from exc


def remove_tree(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()
