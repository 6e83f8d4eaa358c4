"""The version-control interface the release workflows are written against.

Workflows and the latest-tag reconciler only talk to a VcsPort, so tests
can substitute an in-memory implementation. GitVcs is the real one,
bound to a working directory.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from relman.git import operations, queries
from relman.git.queries import TagLookup


class VcsPort(ABC):
    """Abstract interface for the git operations a release needs."""

    # Query operations

    @abstractmethod
    def resolve_tag_commit(self, tag: str) -> TagLookup:
        """Resolve a tag to its commit; a missing tag is not an error."""
        ...

    @abstractmethod
    def tags_pointing_at(self, commit: str) -> list[str]:
        """List tag names that point at a commit."""
        ...

    @abstractmethod
    def current_branch_name(self) -> str: ...

    @abstractmethod
    def has_uncommitted_changes(self) -> bool: ...

    @abstractmethod
    def has_staged_changes(self) -> bool: ...

    # Mutation operations

    @abstractmethod
    def create_or_move_tag(
        self, tag: str, force: bool = False, at_commit: str | None = None
    ) -> None:
        """Create a tag at HEAD or ``at_commit``; ``force`` moves an existing one."""
        ...

    @abstractmethod
    def push(
        self,
        remote: str,
        ref: str | None = None,
        force: bool = False,
        upstream: bool = False,
        tag: bool = False,
    ) -> None:
        """Push a branch (``ref`` None = current branch) or a tag."""
        ...

    @abstractmethod
    def fetch_tags(self, remote: str) -> None: ...

    @abstractmethod
    def pull(self, remote: str) -> None: ...

    @abstractmethod
    def checkout(self, branch: str, create: bool = False) -> None: ...

    @abstractmethod
    def commit_all(self, message: str) -> str:
        """Commit all tracked changes and return the new commit id."""
        ...


class GitVcs(VcsPort):
    """VcsPort backed by the git command line."""

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd

    def resolve_tag_commit(self, tag: str) -> TagLookup:
        return queries.resolve_tag_commit(tag, cwd=self.cwd)

    def tags_pointing_at(self, commit: str) -> list[str]:
        return queries.tags_pointing_at(commit, cwd=self.cwd)

    def current_branch_name(self) -> str:
        return queries.get_current_branch(cwd=self.cwd)

    def has_uncommitted_changes(self) -> bool:
        return queries.has_uncommitted_changes(cwd=self.cwd)

    def has_staged_changes(self) -> bool:
        return queries.has_staged_changes(cwd=self.cwd)

    def create_or_move_tag(
        self, tag: str, force: bool = False, at_commit: str | None = None
    ) -> None:
        operations.tag(tag, force=force, at_commit=at_commit, cwd=self.cwd)

    def push(
        self,
        remote: str,
        ref: str | None = None,
        force: bool = False,
        upstream: bool = False,
        tag: bool = False,
    ) -> None:
        operations.push(
            remote=remote,
            ref=ref,
            force=force,
            upstream=upstream,
            is_tag=tag,
            cwd=self.cwd,
        )

    def fetch_tags(self, remote: str) -> None:
        operations.fetch(remote=remote, tags=True, cwd=self.cwd)

    def pull(self, remote: str) -> None:
        operations.pull(remote=remote, cwd=self.cwd)

    def checkout(self, branch: str, create: bool = False) -> None:
        operations.checkout(branch, create=create, cwd=self.cwd)

    def commit_all(self, message: str) -> str:
        return operations.commit_all(message, cwd=self.cwd)
