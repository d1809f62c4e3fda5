from __future__ import annotations

import enum
import platform

from harperext.download import DownloadedFileType
from harperext.errors import UnsupportedArchitectureError, UnsupportedPlatformError


class Os(enum.Enum):
    MAC = "mac"
    LINUX = "linux"
    WINDOWS = "windows"


class Architecture(enum.Enum):
    AARCH64 = "aarch64"
    X86_64 = "x86_64"
    X86 = "x86"


OS_TAGS: dict[Os, tuple[str, DownloadedFileType]] = {
    Os.MAC: ("apple-darwin", DownloadedFileType.GZIP_TAR),
    Os.LINUX: ("unknown-linux-gnu", DownloadedFileType.GZIP_TAR),
    Os.WINDOWS: ("pc-windows-msvc", DownloadedFileType.ZIP),
}

# No release assets exist for Architecture.X86.
ARCH_TAGS: dict[Architecture, str] = {
    Architecture.AARCH64: "aarch64",
    Architecture.X86_64: "x86_64",
}

ARCHIVE_EXTENSIONS: dict[DownloadedFileType, str] = {
    DownloadedFileType.GZIP_TAR: "tar.gz",
    DownloadedFileType.ZIP: "zip",
}


def current_platform() -> tuple[Os, Architecture]:
    sys_name = platform.system().lower()
    machine = platform.machine().lower()

    if sys_name == "darwin":
        os_name = Os.MAC
    elif sys_name == "linux":
        os_name = Os.LINUX
    elif sys_name == "windows":
        os_name = Os.WINDOWS
    else:
        raise UnsupportedPlatformError(
            f"Unsupported OS: {sys_name}.", "harper-ls runs on macOS, Linux, and Windows."
        )

    if machine in {"x86_64", "amd64"}:
        arch = Architecture.X86_64
    elif machine in {"aarch64", "arm64"}:
        arch = Architecture.AARCH64
    elif machine in {"i386", "i486", "i586", "i686", "x86"}:
        arch = Architecture.X86
    else:
        raise UnsupportedPlatformError(
            f"Unsupported architecture: {machine}.", "Use x86_64 or aarch64 hardware."
        )

    return os_name, arch


def arch_tag(arch: Architecture) -> str:
    tag = ARCH_TAGS.get(arch)
    if tag is None:
        raise UnsupportedArchitectureError(
            f"{arch.value} architecture is not supported for the Harper language server.",
            "Use an x86_64 or aarch64 build of your editor.",
        )
    return tag


def os_tag(os_name: Os) -> str:
    return OS_TAGS[os_name][0]


def file_type(os_name: Os) -> DownloadedFileType:
    return OS_TAGS[os_name][1]


def asset_name(os_name: Os, arch: Architecture, binary_base: str = "harper-ls") -> str:
    extension = ARCHIVE_EXTENSIONS[file_type(os_name)]
    return f"{binary_base}-{arch_tag(arch)}-{os_tag(os_name)}.{extension}"


def binary_filename(os_name: Os, binary_base: str = "harper-ls") -> str:
    return f"{binary_base}.exe" if os_name is Os.WINDOWS else binary_base


def version_dir_name(version: str, binary_base: str = "harper-ls") -> str:
    return f"{binary_base}-{version}"
