"""Release workflow definitions and their sequential execution.

A workflow is a fixed, ordered tuple of step descriptors built from the
ReleaseContext of the run:

- release-minor: cut the vX.Y.x maintenance branch from the source branch
- release-patch: release from a maintenance branch, then advance latest
- release-pre: tag a prerelease snapshot

Steps run one at a time. The first failing step stops the run and
nothing already done is undone: tags, commits and pushes made by earlier
steps stay in place for the operator to inspect.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from rich.console import Console
from rich.panel import Panel

from relman.config.models import ReleaseSettings
from relman.context import ReleaseContext
from relman.exceptions import PreconditionError, ReleaseError
from relman.git.port import VcsPort
from relman.manifest import Manifest, bump_version
from relman.reconcile import LatestTagReconciler, ReconcileResult

console = Console()


# Step descriptors


@dataclass(frozen=True)
class Step:
    """A single named step of a workflow."""

    name: str

    @property
    def description(self) -> str:
        return self.name


@dataclass(frozen=True)
class ConfirmOnBranch(Step):
    branch: str

    @property
    def description(self) -> str:
        return f"Confirming current branch is {self.branch}"


@dataclass(frozen=True)
class ConfirmOnMaintenanceBranch(Step):
    pattern: str = r"^v[0-9]+\.[0-9]+\.x$"

    @property
    def description(self) -> str:
        return "Confirming current branch is a maintenance branch"


@dataclass(frozen=True)
class ConfirmNoUncommittedChanges(Step):
    @property
    def description(self) -> str:
        return "Confirming there are no modified or untracked files"


@dataclass(frozen=True)
class ConfirmNoStagedChanges(Step):
    @property
    def description(self) -> str:
        return "Confirming there are no staged changes"


@dataclass(frozen=True)
class FetchTags(Step):
    remote: str

    @property
    def description(self) -> str:
        return f"Fetching tags from {self.remote}"


@dataclass(frozen=True)
class Pull(Step):
    remote: str

    @property
    def description(self) -> str:
        return f"Pulling from {self.remote}"


@dataclass(frozen=True)
class Bump(Step):
    kind: str

    @property
    def description(self) -> str:
        return f"Bumping {self.kind} version"


@dataclass(frozen=True)
class CreateTag(Step):
    tag: str
    force: bool = False

    @property
    def description(self) -> str:
        verb = "Moving" if self.force else "Creating"
        return f"{verb} tag {self.tag}"


@dataclass(frozen=True)
class Checkout(Step):
    branch: str
    create: bool = False

    @property
    def description(self) -> str:
        verb = "Creating branch" if self.create else "Checking out"
        return f"{verb} {self.branch}"


@dataclass(frozen=True)
class Push(Step):
    remote: str
    ref: str | None = None
    force: bool = False
    upstream: bool = False
    tag: bool = False

    @property
    def description(self) -> str:
        kind = "tag" if self.tag else "branch"
        target = f"{kind} {self.ref}" if self.ref else "current branch"
        forced = " (force)" if self.force else ""
        return f"Pushing {target} to {self.remote}{forced}"


@dataclass(frozen=True)
class AdvanceLatestTag(Step):
    patch_tag: str

    @property
    def description(self) -> str:
        return f"Advancing latest tag to {self.patch_tag} if necessary"


@dataclass(frozen=True)
class WorkflowDefinition:
    """A named, ordered sequence of steps."""

    name: str
    description: str
    steps: tuple[Step, ...]

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]


# Workflow builders

DESCRIPTIONS: dict[str, str] = {
    "release-pre": "Creates prerelease tags",
    "release-patch": (
        "Creates patch-level tag & advances minor tag, and, optionally, the latest tag"
    ),
    "release-minor": (
        "Creates maintenance branch, patch- & minor-level tags, and advances latest tag"
    ),
    "advance-latest-tag": 'Advances tag "latest" if necessary',
}


def _confirm_clean() -> list[Step]:
    return [
        ConfirmNoUncommittedChanges("confirm:clean-worktree"),
        ConfirmNoStagedChanges("confirm:clean-index"),
    ]


def release_minor(ctx: ReleaseContext, settings: ReleaseSettings) -> WorkflowDefinition:
    """Tag X.Y.0, cut vX.Y.x, and move master on to the next minor prerelease."""
    remote = settings.git.remote
    source = settings.git.source_branch
    steps: list[Step] = [
        ConfirmOnBranch("confirm:on-source-branch", branch=source),
        *_confirm_clean(),
        FetchTags("fetch:tags", remote=remote),
        Pull("pull", remote=remote),
        Bump("bump:minor", kind="minor"),
        CreateTag("tag:patch", tag=ctx.patch_tag),
        CreateTag("tag:minor", tag=ctx.minor_tag, force=True),
        CreateTag("tag:latest", tag=ctx.latest_tag, force=True),
        Checkout("checkout:maintenance", branch=ctx.maintenance_branch, create=True),
        Bump("bump:prepatch", kind="prepatch"),
        Push("push:maintenance", remote=remote, ref=ctx.maintenance_branch, upstream=True),
        Checkout("checkout:source", branch=source),
        Bump("bump:preminor", kind="preminor"),
        Push("push:source", remote=remote, ref=source),
        Push("push:patch-tag", remote=remote, ref=ctx.patch_tag, tag=True),
        Push("push:minor-tag", remote=remote, ref=ctx.minor_tag, force=True, tag=True),
        Push("push:latest-tag", remote=remote, ref=ctx.latest_tag, force=True, tag=True),
    ]
    return WorkflowDefinition(
        name="release-minor",
        description=DESCRIPTIONS["release-minor"],
        steps=tuple(steps),
    )


def release_patch(ctx: ReleaseContext, settings: ReleaseSettings) -> WorkflowDefinition:
    """Tag X.Y.Z on a maintenance branch and advance latest only if newer."""
    remote = settings.git.remote
    steps: list[Step] = [
        ConfirmOnMaintenanceBranch(
            "confirm:on-maintenance-branch",
            pattern=settings.git.maintenance_branch_pattern,
        ),
        *_confirm_clean(),
        FetchTags("fetch:tags", remote=remote),
        Pull("pull", remote=remote),
        Bump("bump:patch", kind="patch"),
        CreateTag("tag:patch", tag=ctx.patch_tag),
        CreateTag("tag:minor", tag=ctx.minor_tag, force=True),
        Bump("bump:prepatch", kind="prepatch"),
        Push("push:maintenance", remote=remote, ref=ctx.maintenance_branch),
        Push("push:patch-tag", remote=remote, ref=ctx.patch_tag, tag=True),
        Push("push:minor-tag", remote=remote, ref=ctx.minor_tag, force=True, tag=True),
        AdvanceLatestTag("advance:latest-tag", patch_tag=ctx.patch_tag),
    ]
    return WorkflowDefinition(
        name="release-patch",
        description=DESCRIPTIONS["release-patch"],
        steps=tuple(steps),
    )


def release_pre(ctx: ReleaseContext, settings: ReleaseSettings) -> WorkflowDefinition:
    """Tag the current prerelease version and bump to the next one."""
    remote = settings.git.remote
    steps: list[Step] = [
        *_confirm_clean(),
        Pull("pull", remote=remote),
        CreateTag("tag:pre", tag=ctx.pre_tag),
        Bump("bump:prerelease", kind="prerelease"),
        Push("push:current", remote=remote),
        Push("push:pre-tag", remote=remote, ref=ctx.pre_tag, tag=True),
    ]
    return WorkflowDefinition(
        name="release-pre",
        description=DESCRIPTIONS["release-pre"],
        steps=tuple(steps),
    )


def advance_latest(ctx: ReleaseContext, settings: ReleaseSettings) -> WorkflowDefinition:
    """Run only the latest-tag reconciliation for the current patch tag."""
    return WorkflowDefinition(
        name="advance-latest-tag",
        description=DESCRIPTIONS["advance-latest-tag"],
        steps=(AdvanceLatestTag("advance:latest-tag", patch_tag=ctx.patch_tag),),
    )


WorkflowBuilder = Callable[[ReleaseContext, ReleaseSettings], WorkflowDefinition]

WORKFLOWS: dict[str, WorkflowBuilder] = {
    "release-pre": release_pre,
    "release-patch": release_patch,
    "release-minor": release_minor,
    "advance-latest-tag": advance_latest,
}


# Execution


@dataclass
class WorkflowReport:
    """Outcome of one workflow run."""

    workflow: str
    completed: list[str] = field(default_factory=list)
    failed_step: str | None = None
    error: ReleaseError | None = None
    reconcile: ReconcileResult | None = None
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return self.error is None


class WorkflowRunner:
    """Executes workflow steps against a repository and its manifest.

    Args:
        vcs: Repository the steps operate on
        manifest: Manifest holding the version bumped by Bump steps
        settings: Release settings (remote, naming, commit message)
        reconciler: Latest-tag reconciler; built from vcs and settings if omitted
        out: Console for progress output
    """

    def __init__(
        self,
        vcs: VcsPort,
        manifest: Manifest,
        settings: ReleaseSettings,
        reconciler: LatestTagReconciler | None = None,
        out: Console | None = None,
    ) -> None:
        self.vcs = vcs
        self.manifest = manifest
        self.settings = settings
        self.out = out or console
        self.reconciler = reconciler or LatestTagReconciler(
            vcs,
            remote=settings.git.remote,
            latest_tag=settings.tags.latest,
            tag_prefix=settings.version.tag_prefix,
            out=self.out,
        )
        self._handlers: dict[type[Step], Callable[..., str]] = {
            ConfirmOnBranch: self._confirm_on_branch,
            ConfirmOnMaintenanceBranch: self._confirm_on_maintenance_branch,
            ConfirmNoUncommittedChanges: self._confirm_no_uncommitted_changes,
            ConfirmNoStagedChanges: self._confirm_no_staged_changes,
            FetchTags: self._fetch_tags,
            Pull: self._pull,
            Bump: self._bump,
            CreateTag: self._create_tag,
            Checkout: self._checkout,
            Push: self._push,
            AdvanceLatestTag: self._advance_latest_tag,
        }
        self._last_reconcile: ReconcileResult | None = None

    def run(self, workflow: WorkflowDefinition, dry_run: bool = False) -> WorkflowReport:
        """Run every step in order, stopping at the first failure.

        Args:
            workflow: Workflow to execute
            dry_run: List the steps without executing them

        Returns:
            WorkflowReport; ``error`` is set when a step failed
        """
        report = WorkflowReport(workflow=workflow.name, dry_run=dry_run)

        for step in workflow.steps:
            if dry_run:
                self.out.print(f"[dim]  would run[/dim] {step.name}: {step.description}")
                continue

            self.out.print(f"\n[bold cyan]>[/bold cyan] {step.description}...")
            try:
                message = self.execute(step)
            except ReleaseError as e:
                self.out.print(f"[red]  Error ({step.name}): {e.message}[/red]")
                if e.details:
                    self.out.print(f"[dim]  {e.details}[/dim]")
                if e.fix_hint:
                    self.out.print(f"[yellow]  Fix:[/yellow] {e.fix_hint}")
                report.failed_step = step.name
                report.error = e
                return report

            self.out.print(f"[green]  {message}[/green]")
            report.completed.append(step.name)
            if isinstance(step, AdvanceLatestTag):
                report.reconcile = self._last_reconcile

        return report

    def execute(self, step: Step) -> str:
        """Execute one step and return a short success message.

        Raises:
            PreconditionError: If a confirmation step fails
            ReleaseError: If the underlying operation fails
        """
        handler = self._handlers.get(type(step))
        if handler is None:
            raise ReleaseError(f"Unsupported workflow step: {type(step).__name__}")
        return handler(step)

    # Preconditions

    def _confirm_on_branch(self, step: ConfirmOnBranch) -> str:
        current = self.vcs.current_branch_name()
        if current != step.branch:
            raise PreconditionError(
                f"Not on {step.branch} branch (current: {current})",
                details=f"This release must be made from the '{step.branch}' branch",
                fix_hint=f"git checkout {step.branch}",
            )
        return f"On branch {current}"

    def _confirm_on_maintenance_branch(self, step: ConfirmOnMaintenanceBranch) -> str:
        current = self.vcs.current_branch_name()
        if not re.match(step.pattern, current):
            raise PreconditionError(
                f"Not on a maintenance branch (current: {current})",
                details="Patch releases are made from vX.Y.x maintenance branches",
                fix_hint="git checkout vX.Y.x",
            )
        return f"On maintenance branch {current}"

    def _confirm_no_uncommitted_changes(self, step: ConfirmNoUncommittedChanges) -> str:
        if self.vcs.has_uncommitted_changes():
            raise PreconditionError(
                "Working directory has modified or untracked files",
                fix_hint="git status",
            )
        return "Working directory is clean"

    def _confirm_no_staged_changes(self, step: ConfirmNoStagedChanges) -> str:
        if self.vcs.has_staged_changes():
            raise PreconditionError(
                "Index has staged changes",
                fix_hint="git diff --cached",
            )
        return "Index is clean"

    # Repository changes

    def _fetch_tags(self, step: FetchTags) -> str:
        self.vcs.fetch_tags(step.remote)
        return f"Fetched tags from {step.remote}"

    def _pull(self, step: Pull) -> str:
        self.vcs.pull(step.remote)
        return f"Pulled from {step.remote}"

    def _bump(self, step: Bump) -> str:
        version = bump_version(
            self.manifest,
            self.vcs,
            step.kind,
            prerelease_name=self.settings.version.prerelease_name,
            commit_message=self.settings.version.commit_message,
        )
        return f"Version bumped to {version}"

    def _create_tag(self, step: CreateTag) -> str:
        self.vcs.create_or_move_tag(step.tag, force=step.force)
        return f"Tagged {step.tag}"

    def _checkout(self, step: Checkout) -> str:
        self.vcs.checkout(step.branch, create=step.create)
        return f"Checked out {step.branch}"

    def _push(self, step: Push) -> str:
        self.vcs.push(
            step.remote,
            step.ref,
            force=step.force,
            upstream=step.upstream,
            tag=step.tag,
        )
        return f"Pushed {step.ref or 'current branch'} to {step.remote}"

    def _advance_latest_tag(self, step: AdvanceLatestTag) -> str:
        result = self.reconciler.reconcile(step.patch_tag)
        self._last_reconcile = result
        latest = self.reconciler.latest_tag
        if result.should_create:
            return f"Latest tag {latest} now points at {step.patch_tag}"
        if result.warnings:
            return f"Latest tag {latest} left unchanged (inconsistent)"
        return f"Latest tag {latest} left at {result.most_recent_prior}"


def execute_workflow(
    runner: WorkflowRunner,
    workflow: WorkflowDefinition,
    dry_run: bool = False,
) -> WorkflowReport:
    """Run a workflow with start and finish banners.

    This is the entry point used by the CLI.
    """
    runner.out.print(
        Panel(
            f"[bold]{workflow.name}[/bold]\n"
            f"{workflow.description}\n"
            f"{'[yellow]DRY RUN[/yellow]' if dry_run else ''}",
            title="Starting Release",
            border_style="cyan",
        )
    )

    report = runner.run(workflow, dry_run=dry_run)

    if report.success:
        runner.out.print(
            Panel(
                f"[bold green]{workflow.name} completed successfully![/bold green]",
                border_style="green",
            )
        )
    else:
        runner.out.print(
            Panel(
                f"[bold red]{workflow.name} failed at {report.failed_step}[/bold red]\n"
                f"Completed steps were not undone: {', '.join(report.completed) or 'none'}",
                border_style="red",
            )
        )

    return report
