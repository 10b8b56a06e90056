"""Domain models for releases, assets, Composer files and setup options."""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin

LATEST = "latest"


@dataclass
class MagoJsonMixin(DataClassJSONMixin):
    """Shared mixin providing mashumaro config and JSON file I/O."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True

    @classmethod
    def from_json_file(cls, file_path: Path) -> Self:
        data = json.loads(file_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {file_path.name}, got {type(data).__name__}")
        return cls.from_dict(data)

    def to_json_string(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


class Platform(str, Enum):
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"


class Architecture(str, Enum):
    X86_64 = "x86_64"
    ARM64 = "arm64"


@dataclass(frozen=True)
class AssetTarget:
    """The operating system and CPU architecture a binary is built for."""

    platform: Platform
    architecture: Architecture

    def __str__(self) -> str:
        return f"{self.platform.value} ({self.architecture.value})"


@dataclass
class ReleaseRecord(MagoJsonMixin):
    """A GitHub release of the Mago repository."""

    id: int
    tag: str = field(metadata=field_options(alias="tag_name"))
    is_draft: bool = field(default=False, metadata=field_options(alias="draft"))
    is_prerelease: bool = field(default=False, metadata=field_options(alias="prerelease"))

    @property
    def is_stable(self) -> bool:
        return not self.is_draft and not self.is_prerelease


@dataclass
class AssetRecord(MagoJsonMixin):
    """A file attached to a GitHub release."""

    name: str
    download_url: str = field(metadata=field_options(alias="browser_download_url"))
    #: GitHub digest of the asset, e.g. ``sha256:<hex>``
    digest: str | None = None

    @property
    def sha256(self) -> str | None:
        if self.digest and self.digest.startswith("sha256:"):
            return self.digest.split(":", 1)[1]
        return None


@dataclass(frozen=True)
class VersionRequest:
    """Either a concrete version to install or the latest stable release."""

    #: Requested version, ``None`` for the latest release
    version: str | None = None

    @classmethod
    def latest(cls) -> VersionRequest:
        return cls()

    @classmethod
    def parse(cls, text: str | None) -> VersionRequest:
        """Turn a resolved version string into a request; ``latest`` and empty text mean the latest release."""
        value = (text or "").strip()
        if not value or value.lower() == LATEST:
            return cls.latest()
        return cls(version=value)

    @property
    def is_latest(self) -> bool:
        return self.version is None

    def __str__(self) -> str:
        return self.version or LATEST


@dataclass(frozen=True)
class ResolvedAsset:
    """The archive selected for download together with its concrete version."""

    version: str
    asset: AssetRecord

    @property
    def download_url(self) -> str:
        return self.asset.download_url


@dataclass
class ComposerPackage(MagoJsonMixin):
    """A package entry in ``composer.lock``."""

    name: str
    version: str | None = None


@dataclass
class ComposerLock(MagoJsonMixin):
    """The subset of ``composer.lock`` needed to find a pinned version."""

    packages: list[ComposerPackage] = field(default_factory=list)
    packages_dev: list[ComposerPackage] = field(default_factory=list, metadata=field_options(alias="packages-dev"))

    def find(self, name: str) -> ComposerPackage | None:
        """Find a package by name, preferring the dev packages."""
        for package in [*self.packages_dev, *self.packages]:
            if package.name == name:
                return package
        return None


@dataclass
class ComposerManifest(MagoJsonMixin):
    """The subset of ``composer.json`` needed to find a version constraint."""

    require: dict[str, str] | None = None
    require_dev: dict[str, str] | None = field(default=None, metadata=field_options(alias="require-dev"))

    @classmethod
    def __pre_deserialize__(cls, d: dict[Any, Any]) -> dict[Any, Any]:
        # PHP encodes an empty map as []
        return {key: value for key, value in d.items() if not (key in ("require", "require-dev") and value == [])}

    def constraint_for(self, name: str) -> str | None:
        """Return the version constraint for *name*, checking ``require-dev`` first."""
        for requirements in (self.require_dev, self.require):
            if requirements and requirements.get(name):
                return requirements[name]
        return None


@dataclass
class SetupOptions:
    """Everything needed to resolve and install one Mago CLI binary."""

    #: Explicit version override, ``None`` to infer it
    version: str | None = None
    #: Project root containing ``composer.json`` and ``composer.lock``
    working_directory: str | None = None
    #: Target platform, ``None`` to detect the host
    target: AssetTarget | None = None
    #: Token used to authenticate GitHub API calls
    token: str | None = None

    @classmethod
    def from_environment(cls, env: Mapping[str, str], target: AssetTarget | None = None) -> SetupOptions:
        """
        Build options from GitHub Actions inputs.

        Actions exposes each input as ``INPUT_<NAME>`` with the name upper-cased
        and hyphens kept. Empty inputs count as unset.
        """
        return cls(
            version=env.get("INPUT_VERSION") or None,
            working_directory=env.get("INPUT_WORKING-DIRECTORY") or None,
            target=target,
            token=env.get("INPUT_GITHUB-TOKEN") or env.get("GITHUB_TOKEN") or None,
        )

    def merged_with(self, other: SetupOptions) -> SetupOptions:
        """Return a copy where unset fields are taken from *other*."""
        return SetupOptions(
            version=self.version or other.version,
            working_directory=self.working_directory or other.working_directory,
            target=self.target or other.target,
            token=self.token or other.token,
        )


@dataclass
class InstalledMago:
    """An installed Mago CLI binary."""

    #: Installed version
    version: str
    #: Directory the archive was extracted into
    install_dir: Path
    #: Directory containing the binary, added to PATH
    bin_dir: Path
    #: Absolute path to the binary
    binary: Path
