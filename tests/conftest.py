"""Shared pytest fixtures for mago-setup tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests.helpers import ComposerProject, FakeReleaseSource, make_release

_HOST_VARIABLES = (
    "GITHUB_ACTIONS",
    "GITHUB_PATH",
    "GITHUB_OUTPUT",
    "GITHUB_TOKEN",
    "INPUT_VERSION",
    "INPUT_WORKING-DIRECTORY",
    "INPUT_GITHUB-TOKEN",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests away from the real workflow files and inputs of a CI runner."""
    for name in _HOST_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PATH", os.environ.get("PATH", ""))


@pytest.fixture
def release_source() -> FakeReleaseSource:
    """A release list with stable, prerelease and draft releases."""
    source = FakeReleaseSource()
    for release_id, tag in enumerate(["1.1.9", "1.2.0", "1.2.5", "1.3.0"], 1):
        source.add_release(make_release(release_id, tag))
    source.add_release(make_release(10, "2.0.0-beta.1", prerelease=True))
    source.add_release(make_release(11, "3.0.0", draft=True))
    return source


@pytest.fixture
def project(tmp_path: Path) -> ComposerProject:
    root = tmp_path / "project"
    root.mkdir()
    return ComposerProject(root=root)
