from mago_setup.domain.models import (
    LATEST,
    Architecture,
    AssetRecord,
    AssetTarget,
    ComposerLock,
    ComposerManifest,
    ComposerPackage,
    InstalledMago,
    Platform,
    ReleaseRecord,
    ResolvedAsset,
    SetupOptions,
    VersionRequest,
)

__all__ = [
    "LATEST",
    "Architecture",
    "AssetRecord",
    "AssetTarget",
    "ComposerLock",
    "ComposerManifest",
    "ComposerPackage",
    "InstalledMago",
    "Platform",
    "ReleaseRecord",
    "ResolvedAsset",
    "SetupOptions",
    "VersionRequest",
]
