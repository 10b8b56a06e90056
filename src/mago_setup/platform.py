"""Platform detection utilities for mago-setup."""

from __future__ import annotations

import platform
import sys

from mago_setup.domain import Architecture, AssetTarget, Platform

_OS_MAP: dict[str, Platform] = {
    "win32": Platform.WINDOWS,
    "linux": Platform.LINUX,
    "darwin": Platform.MACOS,
}

_ARCH_MAP: dict[str, Architecture] = {
    "x86_64": Architecture.X86_64,
    "amd64": Architecture.X86_64,
    "x64": Architecture.X86_64,
    "aarch64": Architecture.ARM64,
    "arm64": Architecture.ARM64,
}


def parse_platform(value: str) -> Platform:
    """Map an OS name (``linux``, ``darwin``, ``macos``, ``win32``, ``windows``) to a :class:`Platform`."""
    key = value.strip().lower()
    try:
        return _OS_MAP.get(key) or Platform(key)
    except ValueError:
        raise ValueError(f"Unsupported OS: {value!r}. Supported: {sorted(_OS_MAP)}") from None


def parse_architecture(value: str) -> Architecture:
    """Map a machine name (``x86_64``, ``amd64``, ``x64``, ``aarch64``, ``arm64``) to an :class:`Architecture`."""
    arch = _ARCH_MAP.get(value.strip().lower())
    if arch is None:
        raise ValueError(f"Unsupported architecture: {value!r}. Supported: {sorted(_ARCH_MAP)}")
    return arch


def get_current_target() -> AssetTarget:
    """
    Return the :class:`AssetTarget` of the running host.

    Raises:
        ValueError: If the current OS or architecture is not recognized.

    """
    return AssetTarget(platform=parse_platform(sys.platform), architecture=parse_architecture(platform.machine()))
