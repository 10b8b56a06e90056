"""Release and archive selection for a resolved Mago version."""

from __future__ import annotations

from py_app_dev.core.logging import logger

from mago_setup.domain import Architecture, AssetRecord, AssetTarget, Platform, ReleaseRecord, ResolvedAsset, VersionRequest
from mago_setup.errors import GitHubApiError, NoMatchingAssetError, NoReleasesAvailableError, ReleaseNotFoundError
from mago_setup.github import MAGO_OWNER, MAGO_REPO, ReleaseSource, is_rate_limited, rate_limit_error
from mago_setup.versions import stable_releases

_ARCH_NAMES: dict[Architecture, str] = {
    Architecture.X86_64: "x86_64",
    Architecture.ARM64: "aarch64",
}

_PLATFORM_SUFFIXES: dict[Platform, str] = {
    Platform.LINUX: "unknown-linux-musl.tar.gz",
    Platform.MACOS: "apple-darwin.tar.gz",
    Platform.WINDOWS: "pc-windows-msvc.zip",
}


def asset_suffix(version: str, target: AssetTarget) -> str:
    """Return the file name ending that identifies the archive of *version* for *target*."""
    return f"mago-{version}-{_ARCH_NAMES[target.architecture]}-{_PLATFORM_SUFFIXES[target.platform]}"


def select_asset(assets: list[AssetRecord], version: str, target: AssetTarget) -> AssetRecord:
    """
    Return the first asset whose name ends with the expected suffix.

    Raises:
        NoMatchingAssetError: If no asset matches.

    """
    suffix = asset_suffix(version, target)
    for asset in assets:
        if asset.name.endswith(suffix):
            return asset
    raise NoMatchingAssetError(
        f"Could not find a Mago CLI release for {target.platform.value} ({target.architecture.value}) "
        f"for the given version ({version}). Expected an asset ending with {suffix!r}."
    )


class AssetLocator:
    """Turn a version request into the single downloadable archive for a target."""

    def __init__(self, source: ReleaseSource, owner: str = MAGO_OWNER, repo: str = MAGO_REPO) -> None:
        self.source = source
        self.owner = owner
        self.repo = repo

    def locate(self, request: VersionRequest, target: AssetTarget) -> ResolvedAsset:
        """
        Find the release for *request* and the archive matching *target*.

        Raises:
            ReleaseNotFoundError: If an explicit version has no release.
            NoReleasesAvailableError: If ``latest`` was requested and no stable release exists.
            NoMatchingAssetError: If the release has no archive for *target*.
            RateLimitError: If the GitHub API quota is exhausted.
            GitHubApiError: For any other API failure.

        """
        try:
            release, version = self.find_release(request)
            assets = self.source.list_release_assets(self.owner, self.repo, release.id)
        except GitHubApiError as exc:
            if is_rate_limited(exc):
                raise rate_limit_error(exc) from exc
            raise
        asset = select_asset(assets, version, target)
        logger.info(f"Selected {asset.name} from release {release.tag}")
        return ResolvedAsset(version=version, asset=asset)

    def find_release(self, request: VersionRequest) -> tuple[ReleaseRecord, str]:
        """Return the release for *request* and the concrete version it stands for."""
        if request.is_latest:
            return self._find_latest_release()
        version = str(request.version)
        try:
            release = self.source.get_release_by_tag(self.owner, self.repo, version)
        except GitHubApiError as exc:
            if exc.status == 404:
                raise ReleaseNotFoundError(f"Version {version} of the Mago CLI does not exist.") from exc
            raise
        return release, version

    def _find_latest_release(self) -> tuple[ReleaseRecord, str]:
        candidates = stable_releases(self.source.list_releases(self.owner, self.repo))
        if not candidates:
            raise NoReleasesAvailableError(f"No stable release of {self.owner}/{self.repo} is available.")
        version, release = candidates[0]
        logger.info(f"Latest Mago release is {version}")
        return release, str(version)
