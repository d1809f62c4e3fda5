from __future__ import annotations

import io
import tarfile
import zipfile
from pathlib import Path

import httpx
import pytest

from harperext import download
from harperext.download import DownloadedFileType
from harperext.errors import BinaryPermissionError, DownloadError, ExtractionError


def _tar_gz(members: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def _zip(members: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buffer.getvalue()


class _FakeStream:
    def __init__(self, body: bytes, status: int = 200) -> None:
        self.body = body
        self.status = status
        self.headers = {"Content-Length": str(len(body))}

    def __enter__(self) -> "_FakeStream":
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> bool:
        return False

    def raise_for_status(self) -> None:
        if self.status >= 400:
            request = httpx.Request("GET", "https://example.test/asset")
            response = httpx.Response(self.status, request=request)
            raise httpx.HTTPStatusError("failed", request=request, response=response)

    def iter_bytes(self):
        midpoint = len(self.body) // 2
        yield self.body[:midpoint]
        yield self.body[midpoint:]


def test_download_file_extracts_tar_gz(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    body = _tar_gz({"harper-ls": b"binary"})
    monkeypatch.setattr(download.httpx, "stream", lambda *_args, **_kwargs: _FakeStream(body))
    progress: list[tuple[int | None, int]] = []

    destination = tmp_path / "out"
    download.download_file(
        "https://example.test/asset",
        destination,
        DownloadedFileType.GZIP_TAR,
        on_progress=lambda total, done: progress.append((total, done)),
    )

    assert (destination / "harper-ls").read_bytes() == b"binary"
    assert progress[0] == (len(body), 0)
    assert progress[-1] == (len(body), len(body))
    assert list(tmp_path.glob(".download.*")) == []


def test_download_file_extracts_zip(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    body = _zip({"harper-ls.exe": b"binary"})
    monkeypatch.setattr(download.httpx, "stream", lambda *_args, **_kwargs: _FakeStream(body))

    destination = tmp_path / "out"
    download.download_file("https://example.test/asset", destination, DownloadedFileType.ZIP)

    assert (destination / "harper-ls.exe").read_bytes() == b"binary"


def test_download_file_http_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(download.httpx, "stream", lambda *_args, **_kwargs: _FakeStream(b"", status=500))

    with pytest.raises(DownloadError, match="Failed to download"):
        download.download_file("https://example.test/asset", tmp_path / "out", DownloadedFileType.GZIP_TAR)
    assert list(tmp_path.glob(".download.*")) == []


def test_download_file_corrupt_archive(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(download.httpx, "stream", lambda *_args, **_kwargs: _FakeStream(b"not an archive"))

    with pytest.raises(ExtractionError):
        download.download_file("https://example.test/asset", tmp_path / "out", DownloadedFileType.GZIP_TAR)


def test_extract_archive_rejects_path_traversal(tmp_path: Path) -> None:
    archive = tmp_path / "evil.tar.gz"
    archive.write_bytes(_tar_gz({"../escaped": b"x"}))

    with pytest.raises(ExtractionError):
        download.extract_archive(archive, tmp_path / "out", DownloadedFileType.GZIP_TAR)
    assert not (tmp_path / "escaped").exists()


def test_make_file_executable(tmp_path: Path) -> None:
    binary = tmp_path / "harper-ls"
    binary.write_text("bin", encoding="utf-8")
    binary.chmod(0o644)

    download.make_file_executable(binary)

    assert binary.stat().st_mode & 0o111 == 0o111


def test_make_file_executable_missing_file(tmp_path: Path) -> None:
    with pytest.raises(BinaryPermissionError):
        download.make_file_executable(tmp_path / "missing")


def test_remove_tree_handles_files_and_dirs(tmp_path: Path) -> None:
    folder = tmp_path / "dir"
    (folder / "nested").mkdir(parents=True)
    stray = tmp_path / "stray.txt"
    stray.write_text("x", encoding="utf-8")

    download.remove_tree(folder)
    download.remove_tree(stray)
    download.remove_tree(tmp_path / "missing")

    assert not folder.exists()
    assert not stray.exists()


def test_download_file_unwritable_parent(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(DownloadError, match="Failed to download"):
        download.download_file("https://example.test/asset", blocker / "out", DownloadedFileType.GZIP_TAR)
