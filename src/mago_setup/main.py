"""CLI entry point for mago-setup."""

import os
import sys
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from py_app_dev.core.exceptions import UserNotificationException
from py_app_dev.core.logging import logger, setup_logger, time_it
from rich.progress import BarColumn, DownloadColumn, Progress, TaskID, TimeRemainingColumn, TransferSpeedColumn

from mago_setup import __version__
from mago_setup.domain import AssetTarget, SetupOptions
from mago_setup.downloader import ProgressCallback
from mago_setup.environment import report_failure
from mago_setup.installer import MagoInstaller
from mago_setup.platform import get_current_target, parse_architecture, parse_platform

package_name = "mago-setup"
DEFAULT_ROOT_DIR = Path.home() / ".mago-setup"


def _create_progress_callback(progress: Progress) -> ProgressCallback:
    """Create a progress callback that manages one task bar per label."""
    tasks: dict[str, TaskID] = {}

    def callback(label: str, current: int, total: int | None) -> None:
        if label not in tasks:
            tasks[label] = progress.add_task(label, total=total or 0)
        task_id = tasks[label]
        if total and progress.tasks[task_id].total != total:
            progress.update(task_id, total=total)
        progress.update(task_id, completed=current)

    return callback


app = typer.Typer(
    name=package_name,
    help="Install the Mago CLI from its GitHub releases.",
    no_args_is_help=True,
    add_completion=False,
)

VersionOption = Annotated[str | None, typer.Option("--version", help="Mago version to install, or 'latest'.")]
WorkingDirectoryOption = Annotated[
    Path | None, typer.Option("--working-directory", "-d", help="Project root containing composer.json and composer.lock.")
]
TokenOption = Annotated[str | None, typer.Option("--token", envvar="GITHUB_TOKEN", help="GitHub token for API calls.", show_default=False)]
PlatformOption = Annotated[str | None, typer.Option("--platform", help="Target OS (linux, macos, windows). Defaults to the host.")]
ArchOption = Annotated[str | None, typer.Option("--arch", help="Target architecture (x86_64, arm64). Defaults to the host.")]
RootOption = Annotated[Path, typer.Option("--root", help="Root directory for installed versions and the download cache.")]


@app.callback(invoke_without_command=True)
def version(
    version: bool = typer.Option(None, "--version", "-v", is_eager=True, help="Show version and exit."),
) -> None:
    if version:
        typer.echo(f"{package_name} {__version__}")
        raise typer.Exit()


def _build_target(platform_name: str | None, arch: str | None) -> AssetTarget | None:
    if not platform_name and not arch:
        return None
    detected = None if platform_name and arch else get_current_target()
    return AssetTarget(
        platform=parse_platform(platform_name) if platform_name else detected.platform,  # type: ignore[union-attr]
        architecture=parse_architecture(arch) if arch else detected.architecture,  # type: ignore[union-attr]
    )


def _build_options(
    version: str | None,
    working_directory: Path | None,
    token: str | None,
    platform_name: str | None,
    arch: str | None,
) -> SetupOptions:
    """Combine command line options with GitHub Actions inputs; the command line wins."""
    options = SetupOptions(
        version=version,
        working_directory=str(working_directory) if working_directory else None,
        target=_build_target(platform_name, arch),
        token=token,
    )
    return options.merged_with(SetupOptions.from_environment(os.environ))


def _fail(error: Exception) -> NoReturn:
    logger.error(str(error))
    report_failure(str(error))
    raise typer.Exit(1) from error


@app.command(help="Install the Mago CLI and add it to PATH.")
@time_it("install")
def install(
    version: VersionOption = None,
    working_directory: WorkingDirectoryOption = None,
    token: TokenOption = None,
    platform_name: PlatformOption = None,
    arch: ArchOption = None,
    cache: Annotated[bool, typer.Option("--cache/--no-cache", help="Use download cache.")] = True,
    root_dir: RootOption = DEFAULT_ROOT_DIR,
) -> None:
    with Progress(
        "[progress.description]{task.description}",
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
    ) as progress:
        installer = MagoInstaller(root_dir=root_dir, progress_callback=_create_progress_callback(progress), use_cache=cache)
        try:
            options = _build_options(version, working_directory, token, platform_name, arch)
            installed = installer.install(options)
        except (UserNotificationException, ValueError, OSError) as e:
            progress.stop()
            _fail(e)

    typer.echo(f"Mago {installed.version} installed at {installed.binary}")


@app.command(help="Show which Mago release and archive would be installed.")
@time_it("resolve")
def resolve(
    version: VersionOption = None,
    working_directory: WorkingDirectoryOption = None,
    token: TokenOption = None,
    platform_name: PlatformOption = None,
    arch: ArchOption = None,
) -> None:
    installer = MagoInstaller(root_dir=DEFAULT_ROOT_DIR)
    try:
        resolved = installer.resolve(_build_options(version, working_directory, token, platform_name, arch))
    except (UserNotificationException, ValueError, OSError) as e:
        _fail(e)

    typer.echo(f"version: {resolved.version}")
    typer.echo(f"asset: {resolved.asset.name}")
    typer.echo(f"url: {resolved.download_url}")


def main() -> int:
    try:
        setup_logger()
        app()
        return 0
    except UserNotificationException as e:
        logger.error(f"{e}")
        report_failure(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
