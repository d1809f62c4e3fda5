from __future__ import annotations


class HarperExtError(Exception):
    """Base exception with user-facing remediation text."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def format(self) -> str:
        if self.hint:
            return f"{self.message} {self.hint}"
        return self.message


class UnknownServerError(HarperExtError):
    pass


class UnsupportedPlatformError(HarperExtError):
    pass


class UnsupportedArchitectureError(UnsupportedPlatformError):
    pass


class FetchError(HarperExtError):
    pass


class NoCompatibleAssetError(HarperExtError):
    pass


class DownloadError(HarperExtError):
    pass


class ExtractionError(HarperExtError):
    pass


class BinaryPermissionError(HarperExtError):
    pass


class PathEncodingError(HarperExtError):
    pass
