"""Archive downloading, SHA256 verification, and caching for mago-setup."""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.request import url2pathname

import requests
from py_app_dev.core.logging import logger

from mago_setup.errors import DownloadError, HashMismatchError

ProgressCallback = Callable[[str, int, int | None], None]
# Signature: (label, current, total_or_none)

_CHUNK_SIZE = 8192
_DOWNLOAD_TIMEOUT = 60


def download_file(
    url: str,
    dest: Path,
    label: str = "",
    progress_callback: ProgressCallback | None = None,
) -> Path:
    """
    Download the file at *url* to *dest*.

    Args:
        url: URL to download from. ``file://`` URLs are copied.
        dest: Local file path to write to.
        label: Label passed to the progress callback.
        progress_callback: Optional callback invoked on each chunk.

    Returns:
        The *dest* path.

    Raises:
        DownloadError: On HTTP or network failures.

    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    if url.startswith("file://"):
        _copy_local_file(Path(url2pathname(url[7:])), dest, label, progress_callback)
        return dest
    _download_via_http(url, dest, label, progress_callback)
    return dest


def _copy_local_file(src: Path, dest: Path, label: str, progress_callback: ProgressCallback | None) -> None:
    try:
        file_size = src.stat().st_size
        copied = 0
        with src.open("rb") as src_fh, dest.open("wb") as dst_fh:
            while chunk := src_fh.read(_CHUNK_SIZE):
                dst_fh.write(chunk)
                copied += len(chunk)
                if progress_callback:
                    progress_callback(label, copied, file_size)
    except OSError as exc:
        raise DownloadError(f"Failed to copy {src}: {exc}") from exc


def _download_via_http(
    url: str,
    dest: Path,
    label: str,
    progress_callback: ProgressCallback | None,
) -> None:
    try:
        with requests.get(url, stream=True, timeout=_DOWNLOAD_TIMEOUT) as response:
            response.raise_for_status()
            content_length = response.headers.get("Content-Length")
            total: int | None = int(content_length) if content_length else None
            downloaded = 0
            with dest.open("wb") as fh:
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    fh.write(chunk)
                    downloaded += len(chunk)
                    if progress_callback:
                        progress_callback(label, downloaded, total)
    except requests.RequestException as exc:
        raise DownloadError(f"Failed to download {url}: {exc}") from exc


def verify_sha256(file_path: Path, expected_hash: str) -> None:
    """
    Verify *file_path* matches *expected_hash*.

    Raises:
        HashMismatchError: When the computed hash differs from *expected_hash*.

    """
    sha256 = hashlib.sha256()
    with file_path.open("rb") as fh:
        while chunk := fh.read(_CHUNK_SIZE):
            sha256.update(chunk)
    actual = sha256.hexdigest()
    if actual != expected_hash.lower():
        raise HashMismatchError(f"SHA256 mismatch for {file_path.name}: expected {expected_hash}, got {actual}")


def _cache_path_for(url: str, cache_dir: Path) -> Path:
    """Derive a deterministic cache file path from a URL."""
    filename = Path(url.split("?")[0].rstrip("/")).name
    url_hash = hashlib.sha256(url.encode()).hexdigest()[:8]
    return cache_dir / f"{url_hash}_{filename}"


@dataclass
class DownloadResult:
    """Result of a download operation with cache status."""

    path: Path
    downloaded: bool


def get_cached_or_download(
    url: str,
    cache_dir: Path,
    sha256: str | None = None,
    label: str = "",
    progress_callback: ProgressCallback | None = None,
    use_cache: bool = True,
) -> DownloadResult:
    """
    Return a cached copy of the archive, downloading if necessary.

    When *sha256* is given, cached and fresh downloads are verified against it
    and a cached file with the wrong hash is deleted and re-downloaded.

    Args:
        url: Archive URL.
        cache_dir: Directory used for caching downloaded archives.
        sha256: Expected SHA256 hex digest, if known.
        label: Label passed to the progress callback.
        progress_callback: Optional callback invoked during download.
        use_cache: If False, skip the cache and always download.

    Returns:
        Path to the archive in the cache.

    """
    cached = _cache_path_for(url, cache_dir)
    if use_cache and cached.exists():
        try:
            if sha256:
                verify_sha256(cached, sha256)
            logger.info(f"Cache hit: {cached}")
            return DownloadResult(path=cached, downloaded=False)
        except HashMismatchError:
            logger.warning(f"Corrupt cache entry {cached}, re-downloading")
            cached.unlink()
    cache_dir.mkdir(parents=True, exist_ok=True)
    download_file(url, cached, label=label, progress_callback=progress_callback)
    if sha256:
        verify_sha256(cached, sha256)
    return DownloadResult(path=cached, downloaded=True)
