"""
Version resolution: decide which Mago release to install.

The version comes from the first source that provides one:

1. the explicit version input,
2. the ``carthage-software/mago`` entry in ``composer.lock``,
3. the ``carthage-software/mago`` constraint in ``composer.json``
   (a range is matched against the published releases),
4. ``latest``.

A source that has nothing to say is *absent*; a source that could not be
read is *failed*. Both fall through to the next source and are logged
differently.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from py_app_dev.core.logging import logger

from mago_setup.domain import LATEST, ComposerLock, ComposerManifest
from mago_setup.environment import notify_warning
from mago_setup.errors import MagoSetupError
from mago_setup.github import MAGO_OWNER, MAGO_REPO, ReleaseSource
from mago_setup.versions import is_exact_version, max_satisfying, parse_range, release_versions

MAGO_PACKAGE = "carthage-software/mago"

RANGE_WARNING = (
    "The version of mago detected in your composer.json file is specified as a range. "
    "The latest version that satisfies the range will be installed. "
    "Pin the version to a specific release to avoid this warning."
)


class LookupStatus(Enum):
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(frozen=True)
class VersionLookup:
    """Outcome of asking one source for a version."""

    status: LookupStatus
    version: str | None = None
    reason: str = ""

    @classmethod
    def found(cls, version: str) -> VersionLookup:
        return cls(LookupStatus.FOUND, version=version)

    @classmethod
    def absent(cls, reason: str) -> VersionLookup:
        return cls(LookupStatus.ABSENT, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> VersionLookup:
        return cls(LookupStatus.FAILED, reason=reason)


def first_found(lookups: Iterable[tuple[str, Callable[[], VersionLookup]]]) -> tuple[str, VersionLookup] | None:
    """
    Evaluate *lookups* in order and return the first one that found a version.

    Each lookup is only evaluated once all earlier ones came back absent or
    failed. Returns ``None`` when no lookup found anything.
    """
    for source_name, lookup in lookups:
        result = lookup()
        if result.status is LookupStatus.FOUND:
            return source_name, result
        if result.status is LookupStatus.FAILED:
            logger.debug(f"Ignoring {source_name}: {result.reason}")
        else:
            logger.debug(f"No version in {source_name}: {result.reason}")
    return None


def resolve_root(working_directory: str | Path | None) -> Path:
    """
    Return the project root to read Composer files from.

    A supplied directory is used when it exists. Otherwise the current working
    directory is used.

    Raises:
        MagoSetupError: If the current working directory itself is unavailable.

    """
    if working_directory:
        root = Path(working_directory)
        if root.is_dir():
            return root
        notify_warning("The specified working directory does not exist. Using the current working directory instead.")
    else:
        logger.info("No working directory specified. Using the current working directory.")
    try:
        return Path.cwd()
    except OSError as exc:
        raise MagoSetupError(f"Cannot determine the current working directory: {exc}") from exc


class VersionResolver:
    """Determine the Mago version to install."""

    def __init__(
        self,
        source: ReleaseSource,
        package_name: str = MAGO_PACKAGE,
        owner: str = MAGO_OWNER,
        repo: str = MAGO_REPO,
    ) -> None:
        self.source = source
        self.package_name = package_name
        self.owner = owner
        self.repo = repo

    def resolve(self, explicit: str | None = None, working_directory: str | Path | None = None) -> str:
        """
        Return the version to install, or ``latest``.

        Args:
            explicit: Version override, used verbatim when not empty.
            working_directory: Project root holding ``composer.json`` / ``composer.lock``.

        """
        root = resolve_root(working_directory)
        result = first_found(
            [
                ("version input", lambda: self.from_explicit(explicit)),
                ("composer.lock", lambda: self.from_lock_file(root)),
                ("composer.json", lambda: self.from_manifest(root)),
            ]
        )
        if result is None:
            logger.info("No Mago version configured. Using the latest release.")
            return LATEST
        source_name, lookup = result
        logger.info(f"Using Mago version {lookup.version} from {source_name}")
        return lookup.version or LATEST

    def from_explicit(self, explicit: str | None) -> VersionLookup:
        version = (explicit or "").strip()
        if not version:
            return VersionLookup.absent("no version given")
        return VersionLookup.found(version)

    def from_lock_file(self, root: Path) -> VersionLookup:
        """Read the locked version of the package from ``composer.lock``."""
        lock_path = root / "composer.lock"
        if not lock_path.is_file():
            return VersionLookup.absent(f"{lock_path} does not exist")
        try:
            lock = ComposerLock.from_json_file(lock_path)
        except json.JSONDecodeError as e:
            return VersionLookup.failed(f"{lock_path} is not valid JSON: {e}")
        except Exception as e:
            return VersionLookup.failed(f"Failed to read {lock_path}: {e}")
        package = lock.find(self.package_name)
        if package is None or not package.version:
            return VersionLookup.absent(f"{self.package_name} is not locked in {lock_path}")
        return VersionLookup.found(package.version)

    def from_manifest(self, root: Path) -> VersionLookup:
        """
        Read the version constraint of the package from ``composer.json``.

        An exact version is returned as written. A range is resolved to the
        highest published stable release that satisfies it.
        """
        manifest_path = root / "composer.json"
        if not manifest_path.is_file():
            return VersionLookup.absent(f"{manifest_path} does not exist")
        try:
            manifest = ComposerManifest.from_json_file(manifest_path)
        except json.JSONDecodeError as e:
            return VersionLookup.failed(f"{manifest_path} is not valid JSON: {e}")
        except Exception as e:
            return VersionLookup.failed(f"Failed to read {manifest_path}: {e}")

        constraint = manifest.constraint_for(self.package_name)
        if not constraint:
            return VersionLookup.absent(f"{self.package_name} is not a dependency in {manifest_path}")
        if is_exact_version(constraint):
            return VersionLookup.found(constraint)

        spec = parse_range(constraint)
        if spec is None:
            return VersionLookup.absent(f"Unsupported version constraint {constraint!r} in {manifest_path}")

        notify_warning(RANGE_WARNING, title="Mago version specified as a range.")
        try:
            versions = release_versions(self.source.list_releases(self.owner, self.repo))
        except Exception as e:
            return VersionLookup.failed(f"Could not list releases to match {constraint!r}: {e}")
        best = max_satisfying(versions, spec)
        if best is None:
            return VersionLookup.absent(f"No release satisfies {constraint!r}")
        return VersionLookup.found(str(best))
