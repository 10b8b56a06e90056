"""Reusable test helpers for building release archives and fake release sources."""

from __future__ import annotations

import hashlib
import json
import tarfile
import zipfile
from collections.abc import Callable
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any

from mago_setup.domain import AssetRecord, ReleaseRecord
from mago_setup.errors import GitHubApiError

TRIPLES = {
    "linux": "unknown-linux-musl.tar.gz",
    "macos": "apple-darwin.tar.gz",
    "windows": "pc-windows-msvc.zip",
}


def make_release(release_id: int, tag: str, draft: bool = False, prerelease: bool = False) -> ReleaseRecord:
    return ReleaseRecord(id=release_id, tag=tag, is_draft=draft, is_prerelease=prerelease)


def make_assets(version: str, base_url: str = "https://github.com/carthage-software/mago/releases/download") -> list[AssetRecord]:
    """Return the archives a Mago release publishes, one per platform and architecture."""
    assets = []
    for arch in ("x86_64", "aarch64"):
        for triple in TRIPLES.values():
            name = f"mago-{version}-{arch}-{triple}"
            assets.append(AssetRecord(name=name, download_url=f"{base_url}/{version}/{name}"))
    return assets


@dataclass
class FakeReleaseSource:
    """In-memory stand-in for the GitHub release API."""

    releases: list[ReleaseRecord] = field(default_factory=list)
    assets: dict[int, list[AssetRecord]] = field(default_factory=dict)
    #: Raised by every query when set
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    def list_releases(self, owner: str, repo: str) -> list[ReleaseRecord]:
        self.calls.append("list_releases")
        if self.error:
            raise self.error
        return list(self.releases)

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> ReleaseRecord:
        self.calls.append(f"get_release_by_tag:{tag}")
        if self.error:
            raise self.error
        for release in self.releases:
            if release.tag == tag:
                return release
        raise GitHubApiError("Not Found", status=404)

    def list_release_assets(self, owner: str, repo: str, release_id: int) -> list[AssetRecord]:
        self.calls.append(f"list_release_assets:{release_id}")
        if self.error:
            raise self.error
        return list(self.assets.get(release_id, []))

    def add_release(self, release: ReleaseRecord, assets: list[AssetRecord] | None = None) -> None:
        self.releases.append(release)
        self.assets[release.id] = make_assets(release.tag) if assets is None else assets


@dataclass
class ComposerProject:
    """A Composer project directory with helpers to write its manifest and lock file."""

    root: Path

    def write_lock(self, packages_dev: list[dict[str, Any]] | None = None, packages: list[dict[str, Any]] | None = None) -> Path:
        path = self.root / "composer.lock"
        path.write_text(json.dumps({"packages": packages or [], "packages-dev": packages_dev or []}))
        return path

    def write_manifest(self, require: dict[str, str] | None = None, require_dev: dict[str, str] | None = None) -> Path:
        data: dict[str, Any] = {"name": "acme/app"}
        if require is not None:
            data["require"] = require
        if require_dev is not None:
            data["require-dev"] = require_dev
        path = self.root / "composer.json"
        path.write_text(json.dumps(data))
        return path


def create_archive(
    base_dir: Path,
    name: str,
    files: dict[str, str],
    top_dir: str | None = None,
) -> tuple[Path, str]:
    """
    Create a ``.tar.gz`` or ``.zip`` archive (picked from *name*) and return ``(path, sha256)``.

    Args:
        base_dir: Directory where the archive file will be written.
        name: Archive file name.
        files: Mapping of filename → text content.
        top_dir: Optional top-level directory inside the archive.

    """
    creators: dict[str, Callable[[Path, dict[str, str], str | None], None]] = {".tar.gz": _create_tar_gz, ".zip": _create_zip}
    suffix = next((ext for ext in creators if name.endswith(ext)), None)
    if suffix is None:
        raise ValueError(f"Unsupported test archive name: {name!r}. Use '.tar.gz' or '.zip'.")
    archive_path = base_dir / name
    creators[suffix](archive_path, files, top_dir)
    sha256 = hashlib.sha256(archive_path.read_bytes()).hexdigest()
    return archive_path, sha256


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _create_tar_gz(archive_path: Path, files: dict[str, str], top_dir: str | None) -> None:
    with tarfile.open(archive_path, "w:gz") as tf:
        for name, content in files.items():
            entry_name = f"{top_dir}/{name}" if top_dir else name
            data = content.encode()
            info = tarfile.TarInfo(name=entry_name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, BytesIO(data))


def _create_zip(archive_path: Path, files: dict[str, str], top_dir: str | None) -> None:
    with zipfile.ZipFile(archive_path, "w") as zf:
        for name, content in files.items():
            entry_name = f"{top_dir}/{name}" if top_dir else name
            zf.writestr(entry_name, content)
