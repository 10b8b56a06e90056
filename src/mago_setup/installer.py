"""Resolve, download and install the Mago CLI."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from py_app_dev.core.logging import logger

from mago_setup.domain import AssetTarget, InstalledMago, Platform, ResolvedAsset, SetupOptions, VersionRequest
from mago_setup.downloader import ProgressCallback, get_cached_or_download
from mago_setup.environment import add_to_path, set_output
from mago_setup.errors import MagoSetupError
from mago_setup.extractor import extract_archive
from mago_setup.github import GitHubClient, ReleaseSource
from mago_setup.locator import AssetLocator
from mago_setup.platform import get_current_target
from mago_setup.resolver import VersionResolver


def binary_name(target: AssetTarget) -> str:
    return "mago.exe" if target.platform is Platform.WINDOWS else "mago"


def find_binary(install_dir: Path, name: str) -> Path | None:
    """Return the binary at the top of *install_dir* or inside the first extracted directory."""
    candidate = install_dir / name
    if candidate.is_file():
        return candidate
    subdirs = sorted(item for item in install_dir.iterdir() if item.is_dir()) if install_dir.is_dir() else []
    if subdirs and (subdirs[0] / name).is_file():
        return subdirs[0] / name
    return None


class MagoInstaller:
    """Install the Mago CLI from its GitHub releases."""

    def __init__(
        self,
        root_dir: Path,
        source: ReleaseSource | None = None,
        progress_callback: ProgressCallback | None = None,
        use_cache: bool = True,
    ) -> None:
        """
        Initialize the installer.

        Args:
            root_dir: Root directory holding installed versions and the download cache.
            source: Release source, a :class:`GitHubClient` by default.
            progress_callback: Optional callback invoked during download and extraction.
            use_cache: If False, always download the archive.

        """
        self.root_dir = root_dir
        self.install_root = root_dir / "mago"
        self.cache_dir = root_dir / "cache"
        self.source = source
        self.progress_callback = progress_callback
        self.use_cache = use_cache

    def _source_for(self, options: SetupOptions) -> ReleaseSource:
        return self.source or GitHubClient(token=options.token)

    def resolve(self, options: SetupOptions) -> ResolvedAsset:
        """Resolve the version to install and locate its archive for the target platform."""
        source = self._source_for(options)
        target = options.target or get_current_target()
        version = VersionResolver(source).resolve(options.version, options.working_directory)
        return AssetLocator(source).locate(VersionRequest.parse(version), target)

    def install(self, options: SetupOptions) -> InstalledMago:
        """
        Install the Mago CLI described by *options* and put it on the search path.

        Returns:
            The installed binary and its location.

        """
        target = options.target or get_current_target()
        resolved = self.resolve(replace(options, target=target))
        installed = self._install_resolved(resolved, target)
        add_to_path(installed.bin_dir)
        set_output("version", installed.version)
        set_output("path", str(installed.binary))
        logger.info(f"Installed Mago {installed.version} at {installed.binary}")
        return installed

    def _install_resolved(self, resolved: ResolvedAsset, target: AssetTarget) -> InstalledMago:
        name = binary_name(target)
        install_dir = self.install_root / resolved.version / f"{target.platform.value}-{target.architecture.value}"
        existing = find_binary(install_dir, name)
        if existing:
            logger.info(f"Skipping download of Mago {resolved.version}: already installed")
            return InstalledMago(version=resolved.version, install_dir=install_dir, bin_dir=existing.parent, binary=existing)

        archive = get_cached_or_download(
            resolved.download_url,
            self.cache_dir,
            sha256=resolved.asset.sha256,
            label=resolved.asset.name,
            progress_callback=self.progress_callback,
            use_cache=self.use_cache,
        )
        extract_archive(archive.path, install_dir, progress_callback=self.progress_callback, label=resolved.asset.name)

        binary = find_binary(install_dir, name)
        if binary is None:
            raise MagoSetupError(f"Archive {resolved.asset.name} does not contain the {name} binary.")
        binary.chmod(0o755)
        return InstalledMago(version=resolved.version, install_dir=install_dir, bin_dir=binary.parent, binary=binary)
