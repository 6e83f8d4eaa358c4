"""Command-line interface for relman.

Provides commands for:
- release-pre: tag a prerelease snapshot
- release-patch: release a fix from a maintenance branch
- release-minor: cut a maintenance branch and release X.Y.0
- advance-latest-tag: move the latest tag to the current patch tag if newer
- help: list the commands
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from relman import __version__
from relman.config.loader import load_settings
from relman.config.models import ReleaseSettings
from relman.context import ReleaseContext
from relman.exceptions import ReleaseError
from relman.git.port import GitVcs
from relman.manifest import PackageJsonManifest
from relman.workflow import (
    DESCRIPTIONS,
    WORKFLOWS,
    WorkflowRunner,
    execute_workflow,
)

app = typer.Typer(
    name="relman",
    help="Release management for maintenance-branch based projects",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

HELP_DESCRIPTION = "Prints this help message."

BASE_PATH_OPTION = typer.Option(
    None,
    "--basePath",
    "--base-path",
    help="Repository working directory (default: current directory)",
)
REMOTE_OPTION = typer.Option(
    None,
    "--remote",
    help="Git remote to fetch from and push to (default: origin)",
)
SOURCE_BRANCH_OPTION = typer.Option(
    None,
    "--source-branch",
    help="Branch minor releases are cut from (default: master)",
)
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to configuration file (default: searched in the repository)",
)
DRY_RUN_OPTION = typer.Option(
    False,
    "--dry-run",
    "-n",
    help="List the steps without running them",
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"relman version {__version__}")
        raise typer.Exit()


def resolve_settings(
    project_root: Path,
    config: Path | None,
    remote: str | None,
    source_branch: str | None,
) -> ReleaseSettings:
    """Load settings and apply command-line overrides."""
    settings = load_settings(config, project_root=project_root)
    overrides: dict[str, str] = {}
    if remote:
        overrides["remote"] = remote
    if source_branch:
        overrides["source_branch"] = source_branch
    if overrides:
        settings = settings.model_copy(
            update={"git": settings.git.model_copy(update=overrides)}
        )
    return settings


def run_workflow(
    name: str,
    base_path: Path | None,
    remote: str | None,
    source_branch: str | None,
    config: Path | None,
    dry_run: bool,
) -> None:
    """Build the named workflow for the repository and run it.

    Raises:
        typer.Exit: With the failing error's exit code
    """
    try:
        project_root = (base_path or Path.cwd()).resolve()
        settings = resolve_settings(project_root, config, remote, source_branch)

        manifest = PackageJsonManifest(
            project_root,
            file=settings.version.file,
            field=settings.version.field,
        )
        context = ReleaseContext.from_version(
            manifest.read_version(),
            tag_prefix=settings.version.tag_prefix,
            latest_tag=settings.tags.latest,
            prerelease_name=settings.version.prerelease_name,
        )
        workflow = WORKFLOWS[name](context, settings)

        runner = WorkflowRunner(GitVcs(project_root), manifest, settings, out=console)
        report = execute_workflow(runner, workflow, dry_run=dry_run)

    except ReleaseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None

    if report.error is not None:
        raise typer.Exit(code=report.error.exit_code)


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: B008
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Release management for maintenance-branch based projects.

    Tags releases, cuts vX.Y.x maintenance branches, and keeps the
    floating minor and latest tags pointing at the right commits.
    """


@app.command(name="release-pre", help=DESCRIPTIONS["release-pre"])
def release_pre(
    base_path: Path | None = BASE_PATH_OPTION,
    remote: str | None = REMOTE_OPTION,
    source_branch: str | None = SOURCE_BRANCH_OPTION,
    config: Path | None = CONFIG_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    run_workflow("release-pre", base_path, remote, source_branch, config, dry_run)


@app.command(name="release-patch", help=DESCRIPTIONS["release-patch"])
def release_patch(
    base_path: Path | None = BASE_PATH_OPTION,
    remote: str | None = REMOTE_OPTION,
    source_branch: str | None = SOURCE_BRANCH_OPTION,
    config: Path | None = CONFIG_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    run_workflow("release-patch", base_path, remote, source_branch, config, dry_run)


@app.command(name="release-minor", help=DESCRIPTIONS["release-minor"])
def release_minor(
    base_path: Path | None = BASE_PATH_OPTION,
    remote: str | None = REMOTE_OPTION,
    source_branch: str | None = SOURCE_BRANCH_OPTION,
    config: Path | None = CONFIG_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    run_workflow("release-minor", base_path, remote, source_branch, config, dry_run)


@app.command(name="advance-latest-tag", help=DESCRIPTIONS["advance-latest-tag"])
def advance_latest_tag(
    base_path: Path | None = BASE_PATH_OPTION,
    remote: str | None = REMOTE_OPTION,
    config: Path | None = CONFIG_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    run_workflow("advance-latest-tag", base_path, remote, None, config, dry_run)


@app.command(name="help", help=HELP_DESCRIPTION)
def help_command() -> None:
    table = Table(title="Usage: relman COMMAND [OPTIONS]", show_header=True)
    table.add_column("Command", style="cyan", no_wrap=True)
    table.add_column("Description")

    for name, description in DESCRIPTIONS.items():
        table.add_row(name, description)
    table.add_row("help", HELP_DESCRIPTION)

    console.print(table)


if __name__ == "__main__":
    app()
