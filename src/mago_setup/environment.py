"""Search path, outputs and annotations for the invoking environment (GitHub Actions or a plain shell)."""

from __future__ import annotations

import os
from collections.abc import MutableMapping
from pathlib import Path

from py_app_dev.core.logging import logger


def is_github_actions(env: MutableMapping[str, str] | None = None) -> bool:
    env = os.environ if env is None else env
    return env.get("GITHUB_ACTIONS") == "true"


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def workflow_command(command: str, message: str, **properties: str) -> str:
    """
    Format a GitHub Actions workflow command such as ``::warning title=x::message``.

    Empty properties are omitted.
    """
    props = ",".join(f"{key}={_escape_property(value)}" for key, value in properties.items() if value)
    head = f"{command} {props}" if props else command
    return f"::{head}::{_escape_data(message)}"


def add_to_path(directory: Path, env: MutableMapping[str, str] | None = None) -> None:
    """
    Put *directory* first on the search path.

    The running process's ``PATH`` is updated, and under GitHub Actions the
    directory is appended to the ``$GITHUB_PATH`` file so later steps see it.
    """
    env = os.environ if env is None else env
    entry = str(directory)
    env["PATH"] = os.pathsep.join(filter(None, [entry, env.get("PATH")]))
    github_path = env.get("GITHUB_PATH")
    if github_path:
        with Path(github_path).open("a", encoding="utf-8") as fh:
            fh.write(f"{entry}\n")
    logger.info(f"Added {entry} to PATH")


def set_output(name: str, value: str, env: MutableMapping[str, str] | None = None) -> None:
    """Append a step output to ``$GITHUB_OUTPUT`` when running under GitHub Actions."""
    env = os.environ if env is None else env
    github_output = env.get("GITHUB_OUTPUT")
    if not github_output:
        return
    with Path(github_output).open("a", encoding="utf-8") as fh:
        fh.write(f"{name}={value}\n")


def notify_warning(message: str, title: str = "") -> None:
    """Log a warning and surface it as a workflow annotation under GitHub Actions."""
    logger.warning(message)
    if is_github_actions():
        print(workflow_command("warning", message, title=title), flush=True)


def report_failure(message: str) -> None:
    """Mark the running workflow step as failed with *message*."""
    if is_github_actions():
        print(workflow_command("error", message), flush=True)
