"""
ReelIndex exception hierarchy.
"""

from typing import Optional


class ReelIndexError(Exception):
    """Base class for ReelIndex errors."""


class ProviderError(ReelIndexError):
    """Error talking to a metadata provider."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.original_error = original_error

    def __str__(self) -> str:
        return f"[{self.provider}] {super().__str__()}"


class ThumbnailError(ReelIndexError):
    """Error downloading or storing artwork."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ScanError(ReelIndexError):
    """Fatal error that aborts a scan."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
