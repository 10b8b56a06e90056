"""Exceptions raised while resolving and installing the Mago CLI."""

from __future__ import annotations

from collections.abc import Mapping

from py_app_dev.core.exceptions import UserNotificationException
from requests.structures import CaseInsensitiveDict


class MagoSetupError(UserNotificationException):
    """Base class for errors reported to the user."""


class GitHubApiError(MagoSetupError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, status: int | None = None, headers: Mapping[str, str] | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.headers: CaseInsensitiveDict[str] = CaseInsensitiveDict(headers or {})


class ReleaseNotFoundError(MagoSetupError):
    """Raised when the requested version has no GitHub release."""


class NoReleasesAvailableError(MagoSetupError):
    """Raised when no stable release exists to satisfy ``latest``."""


class NoMatchingAssetError(MagoSetupError):
    """Raised when a release has no archive for the requested platform."""


class RateLimitError(MagoSetupError):
    """Raised when the GitHub API rate limit is exhausted."""


class DownloadError(MagoSetupError):
    """Raised when a file download fails."""


class HashMismatchError(MagoSetupError):
    """Raised when a file's SHA256 hash does not match the expected value."""
