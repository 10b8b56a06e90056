"""Tests for version coercion and range matching."""

from __future__ import annotations

import pytest
import semantic_version

from mago_setup.versions import coerce_version, is_exact_version, max_satisfying, parse_range, release_versions, stable_releases
from tests.helpers import make_release


@pytest.mark.parametrize(
    ("tag", "expected"),
    [
        ("1.2.3", "1.2.3"),
        ("v1.2.3", "1.2.3"),
        ("v1.2.3-extra", "1.2.3"),
        ("mago-0.26.1", "0.26.1"),
        ("v2", "2.0.0"),
        ("1.4", "1.4.0"),
    ],
)
def test_coerce_version(tag: str, expected: str) -> None:
    assert str(coerce_version(tag)) == expected


def test_coerce_version_without_digits() -> None:
    assert coerce_version("nightly") is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1.2.3", True),
        ("v1.2.3", True),
        ("=1.2.3", True),
        ("1.2.3-rc.1", True),
        ("1.2", False),
        ("^1.2.3", False),
        (">=1.0 <2.0", False),
        ("dev-main", False),
    ],
)
def test_is_exact_version(text: str, expected: bool) -> None:
    assert is_exact_version(text) is expected


@pytest.mark.parametrize("text", ["^1.2", "~1.2.0", ">=1.0 <2.0", "1.2.*", "^0.26 || ^1.0", ">=1.0,<2.0", "^0.26|^1.0", "^1.0@stable"])
def test_parse_range_accepts_composer_constraints(text: str) -> None:
    assert parse_range(text) is not None


@pytest.mark.parametrize("text", ["dev-main", "", "not a version"])
def test_parse_range_rejects_invalid(text: str) -> None:
    assert parse_range(text) is None


VERSIONS = [semantic_version.Version(v) for v in ("1.1.9", "1.2.0", "1.2.5", "1.3.0")]


@pytest.mark.parametrize(
    ("constraint", "expected"),
    [
        ("~1.2.0", "1.2.5"),
        ("^1.2.0", "1.3.0"),
        (">=1.0 <1.2", "1.1.9"),
        (">=1.0,<1.2.5", "1.2.0"),
        ("1.2.*", "1.2.5"),
    ],
)
def test_max_satisfying(constraint: str, expected: str) -> None:
    spec = parse_range(constraint)
    assert spec is not None
    assert str(max_satisfying(VERSIONS, spec)) == expected


def test_max_satisfying_without_match() -> None:
    spec = parse_range("^2.0")
    assert spec is not None
    assert max_satisfying(VERSIONS, spec) is None


def test_stable_releases_excludes_drafts_and_prereleases() -> None:
    releases = [
        make_release(1, "1.0.0"),
        make_release(2, "2.0.0", prerelease=True),
        make_release(3, "3.0.0", draft=True),
        make_release(4, "v1.5.0"),
        make_release(5, "nightly"),
    ]

    candidates = stable_releases(releases)

    assert [(str(version), release.id) for version, release in candidates] == [("1.5.0", 4), ("1.0.0", 1)]


def test_release_versions_sorted_descending() -> None:
    releases = [make_release(i, tag) for i, tag in enumerate(["0.9.0", "1.10.0", "1.2.0"])]

    assert [str(v) for v in release_versions(releases)] == ["1.10.0", "1.2.0", "0.9.0"]
