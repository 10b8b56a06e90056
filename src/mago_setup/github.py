"""Read-only GitHub REST client for releases and release assets."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol, TypeVar

import requests
from py_app_dev.core.logging import logger

from mago_setup.domain import AssetRecord, ReleaseRecord
from mago_setup.errors import GitHubApiError, RateLimitError

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
MAGO_OWNER = "carthage-software"
MAGO_REPO = "mago"

_PAGE_SIZE = 100
_REQUEST_TIMEOUT = 30

RecordT = TypeVar("RecordT", ReleaseRecord, AssetRecord)


class ReleaseSource(Protocol):
    """The upstream queries the version resolver and asset locator rely on."""

    def list_releases(self, owner: str, repo: str) -> list[ReleaseRecord]: ...

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> ReleaseRecord: ...

    def list_release_assets(self, owner: str, repo: str, release_id: int) -> list[AssetRecord]: ...


class GitHubClient:
    """Minimal GitHub REST client built on a ``requests`` session."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str = GITHUB_API_URL,
        session: requests.Session | None = None,
        timeout: float = _REQUEST_TIMEOUT,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            }
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def list_releases(self, owner: str, repo: str) -> list[ReleaseRecord]:
        """Return every release of ``owner/repo``, following pagination."""
        items = self._paginate(f"/repos/{owner}/{repo}/releases")
        return [_load(ReleaseRecord, item) for item in items]

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> ReleaseRecord:
        """
        Return the release whose tag is exactly *tag*.

        Raises:
            GitHubApiError: With ``status == 404`` when no such release exists.

        """
        url = f"{self.api_url}/repos/{owner}/{repo}/releases/tags/{tag}"
        return _load(ReleaseRecord, _json(url, self._get(url)))

    def list_release_assets(self, owner: str, repo: str, release_id: int) -> list[AssetRecord]:
        """Return every asset attached to a release, following pagination."""
        items = self._paginate(f"/repos/{owner}/{repo}/releases/{release_id}/assets")
        return [_load(AssetRecord, item) for item in items]

    def _paginate(self, path: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        url: str | None = f"{self.api_url}{path}"
        params: dict[str, Any] | None = {"per_page": _PAGE_SIZE}
        while url:
            response = self._get(url, params=params)
            page = _json(url, response)
            if not isinstance(page, list):
                raise GitHubApiError(f"GitHub API returned {type(page).__name__} instead of a list from {url}")
            items.extend(page)
            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None
        return items

    def _get(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise GitHubApiError(f"GitHub API request to {url} failed: {exc}") from exc
        if not response.ok:
            raise GitHubApiError(
                f"GitHub API request to {url} failed with status {response.status_code}: {response.reason}",
                status=response.status_code,
                headers=response.headers,
            )
        return response


def _json(url: str, response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise GitHubApiError(f"GitHub API returned an invalid body from {url}: {exc}") from exc


def _load(model: type[RecordT], payload: Any) -> RecordT:
    """Build *model* from an API payload, reporting unexpected shapes as :class:`GitHubApiError`."""
    if not isinstance(payload, dict):
        raise GitHubApiError(f"Unexpected {model.__name__} payload from the GitHub API: {payload!r}")
    try:
        return model.from_dict(payload)
    except (ValueError, LookupError, TypeError) as exc:
        raise GitHubApiError(f"Unexpected {model.__name__} payload from the GitHub API: {exc}") from exc


def is_rate_limited(error: GitHubApiError) -> bool:
    """Return True when *error* was caused by an exhausted API quota."""
    return error.status == 403 and error.headers.get("x-ratelimit-remaining") == "0"


def rate_limit_error(error: GitHubApiError) -> RateLimitError:
    """Build the user-facing error for an exhausted API quota."""
    reset = error.headers.get("x-ratelimit-reset", "unknown")
    when = reset
    if reset.isdigit():
        reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)
        when = f"{reset} ({reset_at:%Y-%m-%d %H:%M:%S} UTC)"
    return RateLimitError(
        f"You have exceeded the GitHub API rate limit. Please try again after {when}. "
        "If you have not already done so, you can authenticate calls to the GitHub API "
        "by setting the `GITHUB_TOKEN` environment variable."
    )
