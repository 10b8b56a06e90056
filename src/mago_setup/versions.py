"""Semantic version coercion and range matching for release tags and Composer constraints."""

from __future__ import annotations

import re
from collections.abc import Iterable

import semantic_version

from mago_setup.domain import ReleaseRecord

_COERCE_RE = re.compile(r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])")


def coerce_version(tag: str) -> semantic_version.Version | None:
    """
    Leniently turn a release tag into a version.

    The first ``major[.minor[.patch]]`` run found in *tag* is used and missing
    parts default to zero, so ``v1.2.3-extra`` becomes ``1.2.3`` and ``v2``
    becomes ``2.0.0``. Returns ``None`` when *tag* holds no number.
    """
    match = _COERCE_RE.search(tag)
    if match is None:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return semantic_version.Version(major=major, minor=minor, patch=patch)


def is_exact_version(text: str) -> bool:
    """Return True when *text* is one complete semantic version (a leading ``v`` or ``=`` is allowed)."""
    candidate = text.strip()
    if candidate[:1] in ("v", "V", "="):
        candidate = candidate[1:]
    try:
        semantic_version.Version(candidate)
    except ValueError:
        return False
    return True


def _normalize_constraint(text: str) -> str:
    """Rewrite Composer-only syntax (``,`` for AND, ``|`` for OR, stability flags) into npm range syntax."""
    constraint = re.sub(r"@\w+", "", text.strip())
    constraint = re.sub(r"\s*,\s*", " ", constraint)
    constraint = re.sub(r"\s*(?<!\|)\|(?!\|)\s*", " || ", constraint)
    return re.sub(r"\s+", " ", constraint).strip()


def parse_range(text: str) -> semantic_version.NpmSpec | None:
    """
    Parse a version constraint such as ``^1.2`` or ``>=1.0 <2.0``; return ``None`` if it is not a valid range.

    Caret and tilde follow npm and Composer: ``^1.2.0`` is ``>=1.2.0 <2.0.0``
    and ``~1.2.0`` is ``>=1.2.0 <1.3.0``.
    """
    constraint = _normalize_constraint(text)
    if not constraint:
        return None
    try:
        return semantic_version.NpmSpec(constraint)
    except ValueError:
        return None


def stable_releases(releases: Iterable[ReleaseRecord]) -> list[tuple[semantic_version.Version, ReleaseRecord]]:
    """
    Return non-draft, non-prerelease releases paired with their coerced version, newest first.

    Releases whose tag cannot be coerced are dropped.
    """
    candidates: list[tuple[semantic_version.Version, ReleaseRecord]] = []
    for release in releases:
        if not release.is_stable:
            continue
        version = coerce_version(release.tag)
        if version is not None:
            candidates.append((version, release))
    return sorted(candidates, key=lambda candidate: candidate[0], reverse=True)


def release_versions(releases: Iterable[ReleaseRecord]) -> list[semantic_version.Version]:
    """Versions of all stable releases, newest first."""
    return [version for version, _ in stable_releases(releases)]


def max_satisfying(versions: Iterable[semantic_version.Version], spec: semantic_version.NpmSpec) -> semantic_version.Version | None:
    """Return the highest version in *versions* that satisfies *spec*, or ``None``."""
    return spec.select(versions)
