"""Git state modification operations.

All functions use relman.utils.shell.run() for command execution and
raise GitError on failures, with the failing command and its output in
the error details.
"""

from pathlib import Path

from relman.exceptions import GitError, UnknownRefError
from relman.git.queries import UNKNOWN_REF_EXIT_CODE
from relman.utils.shell import ShellError, run


def commit_all(message: str, cwd: Path | None = None) -> str:
    """Commit every tracked modification (``git commit -a``).

    Args:
        message: Commit message
        cwd: Working directory (defaults to current directory)

    Returns:
        Commit SHA of the new commit

    Raises:
        GitError: If commit fails or there is nothing to commit
    """
    try:
        run(["git", "commit", "-a", "-m", message], cwd=cwd, check=True)
        sha_result = run(["git", "rev-parse", "HEAD"], cwd=cwd, check=True)
        return sha_result.stdout.strip()
    except ShellError as e:
        raise GitError(
            "Failed to create git commit",
            details=str(e),
            fix_hint="Run 'git status' to check the working tree.",
        ) from e


def tag(
    name: str,
    force: bool = False,
    at_commit: str | None = None,
    cwd: Path | None = None,
) -> None:
    """Create a lightweight git tag, or move it when ``force`` is set.

    Args:
        name: Tag name (e.g., "v1.3.0", "latest")
        force: Replace an existing tag of the same name
        at_commit: Commit-ish to tag (None = HEAD). Tags are peeled so
            the new tag always points at a commit, never at a tag object.
        cwd: Working directory (defaults to current directory)

    Raises:
        UnknownRefError: If ``at_commit`` does not resolve to a commit
        GitError: If tag creation fails or tag already exists without force
    """
    cmd = ["git", "tag"]
    if force:
        cmd.append("-f")
    cmd.append(name)
    if at_commit:
        cmd.append(f"{at_commit}^{{commit}}")

    try:
        run(cmd, cwd=cwd, check=True)
    except ShellError as e:
        if (
            at_commit
            and e.returncode == UNKNOWN_REF_EXIT_CODE
            and "already exists" not in e.stderr
        ):
            raise UnknownRefError(
                at_commit,
                details=str(e),
                fix_hint=f"Run 'git tag -l {at_commit}' to check the tag exists",
            ) from e
        raise GitError(
            f"Failed to create git tag '{name}'",
            details=str(e),
            fix_hint=f"Immutable tags cannot be recreated. Run 'git tag -l {name}' to check.",
        ) from e


def push(
    remote: str = "origin",
    ref: str | None = None,
    force: bool = False,
    upstream: bool = False,
    is_tag: bool = False,
    cwd: Path | None = None,
) -> None:
    """Push a branch or tag to a remote.

    Args:
        remote: Remote name (default: "origin")
        ref: Branch or tag to push (None = current branch)
        force: Whether to force push
        upstream: Set the pushed branch as upstream (``-u``)
        is_tag: Push ``ref`` as ``refs/tags/<ref>``
        cwd: Working directory (defaults to current directory)

    Raises:
        GitError: If push fails
    """
    cmd = ["git", "push"]
    if force:
        cmd.append("--force")
    if upstream:
        cmd.append("--set-upstream")
    cmd.append(remote)
    if ref:
        cmd.append(f"refs/tags/{ref}" if is_tag else ref)

    try:
        run(cmd, cwd=cwd, check=True)
    except ShellError as e:
        target = ref or "current branch"
        raise GitError(
            f"Failed to push {target} to remote '{remote}'",
            details=str(e),
            fix_hint="Ensure remote exists and you have push access. Check network connectivity.",
        ) from e


def fetch(
    remote: str = "origin",
    tags: bool = False,
    cwd: Path | None = None,
) -> None:
    """Fetch updates (optionally all tags) from a remote.

    Raises:
        GitError: If fetch fails
    """
    cmd = ["git", "fetch"]
    if tags:
        cmd.append("--tags")
    cmd.append(remote)

    try:
        run(cmd, cwd=cwd, check=True)
    except ShellError as e:
        raise GitError(
            f"Failed to fetch from remote '{remote}'",
            details=str(e),
            fix_hint="Ensure remote exists and network is available",
        ) from e


def pull(
    remote: str = "origin",
    branch: str | None = None,
    cwd: Path | None = None,
) -> None:
    """Pull from a remote into the current branch.

    Raises:
        GitError: If pull fails (e.g. conflicts, no tracking branch)
    """
    cmd = ["git", "pull", remote]
    if branch:
        cmd.append(branch)

    try:
        run(cmd, cwd=cwd, check=True)
    except ShellError as e:
        raise GitError(
            f"Failed to pull from remote '{remote}'",
            details=str(e),
            fix_hint="Resolve conflicts or set an upstream branch, then retry the release.",
        ) from e


def checkout(
    ref: str,
    create: bool = False,
    cwd: Path | None = None,
) -> None:
    """Checkout a branch, optionally creating it.

    Raises:
        GitError: If checkout fails
    """
    cmd = ["git", "checkout"]
    if create:
        cmd.append("-b")
    cmd.append(ref)

    try:
        run(cmd, cwd=cwd, check=True)
    except ShellError as e:
        action = "create and checkout" if create else "checkout"
        raise GitError(
            f"Failed to {action} '{ref}'",
            details=str(e),
            fix_hint="Ensure the branch exists (or does not, when creating it)",
        ) from e
