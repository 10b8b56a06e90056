"""Unpack Mago release archives (``.tar.gz`` on Linux and macOS, ``.zip`` on Windows)."""

from __future__ import annotations

import tarfile
import zipfile
from collections.abc import Callable
from pathlib import Path

from mago_setup.downloader import ProgressCallback

ARCHIVE_KINDS: dict[str, str] = {
    ".zip": "zip",
    ".tar.gz": "tar",
    ".tgz": "tar",
}


def archive_kind(archive_path: Path) -> str:
    """Return ``zip`` or ``tar`` for *archive_path*, judged by its file name."""
    name = archive_path.name.lower()
    for suffix, kind in ARCHIVE_KINDS.items():
        if name.endswith(suffix):
            return kind
    raise ValueError(f"Unsupported archive format: {archive_path.name}. Supported: {', '.join(ARCHIVE_KINDS)}")


def _ensure_inside(dest_dir: Path, names: list[str]) -> None:
    root = dest_dir.resolve()
    for name in names:
        if not (dest_dir / name).resolve().is_relative_to(root):
            raise ValueError(f"Path traversal detected in archive entry: {name!r}")


def _unpack_zip(archive_path: Path, dest_dir: Path, report: Callable[[int, int], None]) -> None:
    with zipfile.ZipFile(archive_path) as archive:
        members = archive.infolist()
        _ensure_inside(dest_dir, [member.filename for member in members])
        for done, member in enumerate(members, 1):
            archive.extract(member, dest_dir)
            report(done, len(members))


def _unpack_tar(archive_path: Path, dest_dir: Path, report: Callable[[int, int], None]) -> None:
    with tarfile.open(archive_path, "r:gz") as archive:
        members = archive.getmembers()
        _ensure_inside(dest_dir, [member.name for member in members])
        for done, member in enumerate(members, 1):
            if hasattr(tarfile, "data_filter"):
                archive.extract(member, dest_dir, filter="data")
            else:
                archive.extract(member, dest_dir)
            report(done, len(members))


def extract_archive(
    archive_path: Path,
    dest_dir: Path,
    progress_callback: ProgressCallback | None = None,
    label: str = "",
) -> Path:
    """
    Extract *archive_path* into *dest_dir* and return *dest_dir*.

    Raises:
        ValueError: For an unsupported archive name or an entry outside *dest_dir*.

    """

    def report(done: int, total: int) -> None:
        if progress_callback:
            progress_callback(label, done, total)

    unpack = _unpack_zip if archive_kind(archive_path) == "zip" else _unpack_tar
    dest_dir.mkdir(parents=True, exist_ok=True)
    unpack(archive_path, dest_dir, report)
    return dest_dir
