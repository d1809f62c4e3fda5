from __future__ import annotations

from unittest import mock

import pytest

from harperext.download import DownloadedFileType
from harperext.errors import UnsupportedArchitectureError, UnsupportedPlatformError
from harperext.platform import (
    Architecture,
    Os,
    asset_name,
    binary_filename,
    current_platform,
    file_type,
    version_dir_name,
)


@pytest.mark.parametrize(
    ("sys_name", "machine", "expected"),
    [
        ("Darwin", "x86_64", (Os.MAC, Architecture.X86_64)),
        ("Darwin", "arm64", (Os.MAC, Architecture.AARCH64)),
        ("Linux", "amd64", (Os.LINUX, Architecture.X86_64)),
        ("Linux", "aarch64", (Os.LINUX, Architecture.AARCH64)),
        ("Linux", "i686", (Os.LINUX, Architecture.X86)),
        ("Windows", "AMD64", (Os.WINDOWS, Architecture.X86_64)),
    ],
)
def test_current_platform_supported(sys_name: str, machine: str, expected: tuple[Os, Architecture]) -> None:
    with mock.patch("platform.system", return_value=sys_name), mock.patch(
        "platform.machine", return_value=machine
    ):
        assert current_platform() == expected


def test_current_platform_rejects_unknown_os() -> None:
    with mock.patch("platform.system", return_value="Plan9"), mock.patch(
        "platform.machine", return_value="x86_64"
    ):
        with pytest.raises(UnsupportedPlatformError):
            current_platform()


def test_current_platform_rejects_unknown_machine() -> None:
    with mock.patch("platform.system", return_value="Linux"), mock.patch(
        "platform.machine", return_value="riscv64"
    ):
        with pytest.raises(UnsupportedPlatformError):
            current_platform()


def test_asset_name() -> None:
    assert asset_name(Os.LINUX, Architecture.AARCH64) == "harper-ls-aarch64-unknown-linux-gnu.tar.gz"
    assert asset_name(Os.MAC, Architecture.X86_64) == "harper-ls-x86_64-apple-darwin.tar.gz"
    assert asset_name(Os.WINDOWS, Architecture.X86_64) == "harper-ls-x86_64-pc-windows-msvc.zip"


def test_asset_name_rejects_x86() -> None:
    with pytest.raises(UnsupportedArchitectureError, match="x86 architecture is not supported"):
        asset_name(Os.LINUX, Architecture.X86)


def test_file_type_by_os() -> None:
    assert file_type(Os.MAC) is DownloadedFileType.GZIP_TAR
    assert file_type(Os.LINUX) is DownloadedFileType.GZIP_TAR
    assert file_type(Os.WINDOWS) is DownloadedFileType.ZIP


def test_binary_filename() -> None:
    assert binary_filename(Os.LINUX) == "harper-ls"
    assert binary_filename(Os.MAC) == "harper-ls"
    assert binary_filename(Os.WINDOWS) == "harper-ls.exe"


def test_version_dir_name() -> None:
    assert version_dir_name("1.2.3") == "harper-ls-1.2.3"
    assert version_dir_name("v0.9.0") == "harper-ls-v0.9.0"
