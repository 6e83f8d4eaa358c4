"""Advancing the floating "latest" tag after a patch release.

A patch release on an old maintenance branch must not steal ``latest``
from a newer line. The reconciler looks at the release tags sharing a
commit with ``latest`` and only moves ``latest`` when the new patch tag
is strictly newer than all of them.
"""

from dataclasses import dataclass, field
from enum import Enum

from rich.console import Console

from relman.git.port import VcsPort
from relman.utils.version import (
    greater_than,
    is_valid_version,
    normalize_version,
    sort_descending,
)

console = Console()


class ReconcileOutcome(Enum):
    """What the reconciler decided.

    - CREATED: no latest tag existed, it was created at the patch tag
    - ADVANCED: latest was moved to the newer patch tag
    - NOT_ADVANCED: latest already marks a release at least as new
    - SKIPPED: latest exists but no release tag shares its commit
    """

    CREATED = "created"
    ADVANCED = "advanced"
    NOT_ADVANCED = "not_advanced"
    SKIPPED = "skipped"


@dataclass
class ReconcileResult:
    """Decision (and, after reconcile(), the effect) for one patch tag."""

    outcome: ReconcileOutcome
    patch_tag: str
    latest_commit: str | None = None
    colocated_tags: list[str] = field(default_factory=list)
    most_recent_prior: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def should_create(self) -> bool:
        return self.outcome in (ReconcileOutcome.CREATED, ReconcileOutcome.ADVANCED)


def strip_tag_prefix(name: str, tag_prefix: str = "v") -> str:
    """Remove the configured version tag prefix from a tag name, if present.

    Examples:
        >>> strip_tag_prefix("rel1.3.0", "rel")
        '1.3.0'
    """
    if tag_prefix and name.startswith(tag_prefix):
        return name[len(tag_prefix):]
    return name


def scrub_tags(
    tags: str | list[str],
    latest_tag: str = "latest",
    tag_prefix: str = "v",
) -> list[str]:
    """Reduce tag names to distinct release versions.

    The floating tag itself and anything that is not a semantic version
    (minor tags like ``v1.3``, arbitrary labels) are dropped. Prerelease
    suffixes are stripped, so ``v1.3.0-pre.2`` counts as ``1.3.0``.

    Args:
        tags: Tag names, as a list or a whitespace-separated string
        latest_tag: Name of the floating tag to ignore
        tag_prefix: Prefix of version tags, removed before parsing

    Returns:
        ``major.minor.patch`` strings in first-seen order

    Examples:
        >>> scrub_tags("latest v1.3.0 v1.3.0-pre.2 v1.3")
        ['1.3.0']
    """
    names = tags.split() if isinstance(tags, str) else [
        name for entry in tags for name in entry.split()
    ]

    distinct: list[str] = []
    for name in names:
        version = strip_tag_prefix(name, tag_prefix)
        if name == latest_tag or not is_valid_version(version):
            continue
        normalized = normalize_version(version)
        if normalized is not None and normalized not in distinct:
            distinct.append(normalized)
    return distinct


class LatestTagReconciler:
    """Decides whether, and then moves, the floating latest tag.

    Args:
        vcs: Repository to query and tag
        remote: Remote the moved tag is force-pushed to
        latest_tag: Name of the floating tag
        tag_prefix: Prefix of version tags (e.g. "v" in v1.3.0)
        out: Console for operator messages
    """

    def __init__(
        self,
        vcs: VcsPort,
        remote: str = "origin",
        latest_tag: str = "latest",
        tag_prefix: str = "v",
        out: Console | None = None,
    ) -> None:
        self.vcs = vcs
        self.remote = remote
        self.latest_tag = latest_tag
        self.tag_prefix = tag_prefix
        self.out = out or console

    def decide(self, patch_tag: str) -> ReconcileResult:
        """Work out whether ``latest`` should move to ``patch_tag``.

        Only queries the repository; nothing is tagged or pushed.

        Raises:
            GitError: If git fails other than by reporting a missing tag
        """
        latest = self.latest_tag
        self.out.print(f'finding commit that latest tag "{latest}" points to')
        lookup = self.vcs.resolve_tag_commit(latest)
        if not lookup.found:
            self.out.print(f'no latest tag "{latest}" found')
            return ReconcileResult(outcome=ReconcileOutcome.CREATED, patch_tag=patch_tag)

        commit = lookup.commit
        self.out.print(f'latest tag "{latest}" points to commit {commit}')

        colocated = self.vcs.tags_pointing_at(commit)
        self.out.print(
            f'all tags that point to latest tag "{latest}": {" ".join(colocated)}'
        )

        candidates = scrub_tags(
            colocated, latest_tag=latest, tag_prefix=self.tag_prefix
        )
        if not candidates:
            warning = f'erroneous latest tag "{latest}": no other tags found at its commit'
            self.out.print(f"[yellow]WARN:[/yellow] {warning}")
            return ReconcileResult(
                outcome=ReconcileOutcome.SKIPPED,
                patch_tag=patch_tag,
                latest_commit=commit,
                colocated_tags=colocated,
                warnings=[warning],
            )

        most_recent = sort_descending(candidates)[0]
        release = strip_tag_prefix(patch_tag, self.tag_prefix)
        if greater_than(release, most_recent):
            self.out.print(
                f"new release {patch_tag} is NEWER than latest release {most_recent}"
            )
            outcome = ReconcileOutcome.ADVANCED
        else:
            self.out.print(
                f"new release {patch_tag} is OLDER than latest release {most_recent}"
            )
            outcome = ReconcileOutcome.NOT_ADVANCED

        return ReconcileResult(
            outcome=outcome,
            patch_tag=patch_tag,
            latest_commit=commit,
            colocated_tags=colocated,
            most_recent_prior=most_recent,
        )

    def reconcile(self, patch_tag: str) -> ReconcileResult:
        """Move and force-push ``latest`` to ``patch_tag`` if it is newer.

        A SKIPPED outcome is reported, not raised.

        Raises:
            GitError: If a git query, the tag move, or the push fails
        """
        result = self.decide(patch_tag)
        latest = self.latest_tag

        if result.outcome is ReconcileOutcome.SKIPPED:
            self.out.print(f'[red]NOT advancing erroneous latest tag "{latest}"[/red]')
            return result

        if not result.should_create:
            self.out.print(f'NOT advancing latest tag "{latest}"')
            return result

        self.out.print(
            f'advancing latest tag "{latest}" to same commit as {patch_tag}'
        )
        self.vcs.create_or_move_tag(latest, force=True, at_commit=patch_tag)
        self.vcs.push(self.remote, latest, force=True, tag=True)
        return result
