"""Git state query operations.

Read-only git commands used for precondition checks and for the
latest-tag reconciliation. All functions use relman.utils.shell.run()
and raise GitError on unexpected failures.
"""

from dataclasses import dataclass
from pathlib import Path

from relman.exceptions import GitError
from relman.utils.shell import ShellError, format_command, run

# git exits with 128 for every "fatal" error; an unknown revision is told
# apart from the rest (not a repository, corrupt refs) by its message
UNKNOWN_REF_EXIT_CODE = 128
# Matched against untranslated output (LC_ALL=C)
UNKNOWN_REF_MESSAGES = ("bad revision", "unknown revision", "ambiguous argument")


@dataclass(frozen=True)
class TagLookup:
    """Result of resolving a tag to the commit it references.

    A missing tag is an expected outcome, not an error, so it is
    reported here instead of being raised.
    """

    tag: str
    commit: str | None = None

    @property
    def found(self) -> bool:
        return self.commit is not None

    @classmethod
    def not_found(cls, tag: str) -> "TagLookup":
        return cls(tag=tag)

    @classmethod
    def at(cls, tag: str, commit: str) -> "TagLookup":
        return cls(tag=tag, commit=commit)


def resolve_tag_commit(tag: str, cwd: Path | None = None) -> TagLookup:
    """Find the commit a tag points to (``git rev-list -n 1 <tag>``).

    Args:
        tag: Tag name to resolve
        cwd: Working directory (defaults to current directory)

    Returns:
        TagLookup, not found when git reports an unknown revision

    Raises:
        GitError: For any other git failure, including other fatal errors
            such as running outside a repository
    """
    cmd = ["git", "rev-list", "-n", "1", tag, "--"]
    result = run(cmd, cwd=cwd, check=False, env={"LC_ALL": "C"})
    if result.returncode == UNKNOWN_REF_EXIT_CODE and any(
        message in result.stderr.lower() for message in UNKNOWN_REF_MESSAGES
    ):
        return TagLookup.not_found(tag)
    commit = result.stdout.strip()
    if result.returncode != 0 or not commit:
        raise GitError(
            f"Failed to resolve tag '{tag}'",
            details=str(
                ShellError(
                    cmd=format_command(cmd),
                    returncode=result.returncode,
                    stdout=result.stdout,
                    stderr=result.stderr,
                )
            ),
            fix_hint="Ensure you are in a git repository",
        )
    return TagLookup.at(tag, commit)


def tags_pointing_at(commit: str, cwd: Path | None = None) -> list[str]:
    """List the tags that point at a commit.

    Returns:
        Tag names in git's order; empty when there are none

    Raises:
        GitError: If git command fails
    """
    try:
        result = run(["git", "tag", "--points-at", commit], cwd=cwd, check=True)
    except ShellError as e:
        raise GitError(
            f"Failed to list tags at commit {commit}",
            details=str(e),
            fix_hint="Ensure the commit exists. Run 'git log' to verify.",
        ) from e
    return result.stdout.split()


def get_current_branch(cwd: Path | None = None) -> str:
    """Get the name of the current git branch.

    Raises:
        GitError: If unable to determine current branch
    """
    try:
        result = run(["git", "branch", "--show-current"], cwd=cwd, check=True)
        branch = result.stdout.strip()
        if not branch:
            # Detached HEAD
            result = run(
                ["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd, check=True
            )
            branch = result.stdout.strip()
        return branch
    except ShellError as e:
        raise GitError(
            "Failed to get current branch name",
            details=str(e),
            fix_hint="Ensure you are in a git repository with at least one commit",
        ) from e


def get_uncommitted_files(cwd: Path | None = None) -> list[str]:
    """List modified, staged and untracked files (``git status -s``).

    Raises:
        GitError: If git command fails
    """
    try:
        result = run(["git", "status", "-s"], cwd=cwd, check=True)
    except ShellError as e:
        raise GitError(
            "Failed to check git working directory status",
            details=str(e),
            fix_hint="Ensure you are in a git repository and git is installed",
        ) from e

    files = []
    for line in result.stdout.splitlines():
        # Format: "XY filename"
        parts = line.strip().split(maxsplit=1)
        if len(parts) == 2:
            files.append(parts[1])
    return files


def has_uncommitted_changes(cwd: Path | None = None) -> bool:
    """Check for modified or untracked files in the working tree."""
    return bool(get_uncommitted_files(cwd=cwd))


def has_staged_changes(cwd: Path | None = None) -> bool:
    """Check whether the index differs from HEAD.

    Uses ``git diff --cached --exit-code --no-patch``, which exits 1
    when there are staged changes.

    Raises:
        GitError: If git command fails for any other reason
    """
    cmd = ["git", "diff", "--cached", "--exit-code", "--no-patch"]
    result = run(cmd, cwd=cwd, check=False)
    if result.returncode == 0:
        return False
    if result.returncode == 1:
        return True
    raise GitError(
        "Failed to inspect the git index",
        details=str(
            ShellError(
                cmd=format_command(cmd),
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        ),
        fix_hint="Ensure you are in a git repository",
    )
