"""Pytest fixtures for relman tests.

Provides common fixtures for:
- Temporary git repositories (with a bare "origin" remote)
- Node.js projects with a package.json version
- In-memory VcsPort and Manifest fakes for workflow tests
- A console that records output
"""

import io
import json
import os
import subprocess
from collections.abc import Generator
from pathlib import Path

import pytest
from rich.console import Console

from relman.exceptions import GitError, ReleaseError
from relman.git.port import VcsPort
from relman.git.queries import TagLookup
from relman.manifest import Manifest

MUTATING_CALLS = frozenset(
    {"create_or_move_tag", "push", "fetch_tags", "pull", "checkout", "commit_all"}
)


def git(cwd: Path, *args: str) -> str:
    """Run a git command in cwd and return its stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


class FakeVcs(VcsPort):
    """In-memory VcsPort.

    Tags map names to commit ids. Every call is recorded in ``calls``;
    ``fail_on`` maps a method name to the error it should raise.
    """

    def __init__(
        self,
        branch: str = "master",
        tags: dict[str, str] | None = None,
        head: str = "c0",
    ) -> None:
        self.branch = branch
        self.head = head
        self.tags: dict[str, str] = dict(tags or {})
        self.dirty = False
        self.staged = False
        self.calls: list[tuple] = []
        self.commit_messages: list[str] = []
        self.fail_on: dict[str, ReleaseError] = {}

    def _record(self, name: str, *args: object) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    @property
    def mutations(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def resolve_tag_commit(self, tag: str) -> TagLookup:
        self._record("resolve_tag_commit", tag)
        if tag in self.tags:
            return TagLookup.at(tag, self.tags[tag])
        return TagLookup.not_found(tag)

    def tags_pointing_at(self, commit: str) -> list[str]:
        self._record("tags_pointing_at", commit)
        return [name for name, target in self.tags.items() if target == commit]

    def current_branch_name(self) -> str:
        self._record("current_branch_name")
        return self.branch

    def has_uncommitted_changes(self) -> bool:
        self._record("has_uncommitted_changes")
        return self.dirty

    def has_staged_changes(self) -> bool:
        self._record("has_staged_changes")
        return self.staged

    def create_or_move_tag(
        self, tag: str, force: bool = False, at_commit: str | None = None
    ) -> None:
        self._record("create_or_move_tag", tag, force, at_commit)
        if tag in self.tags and not force:
            raise GitError(f"Failed to create git tag '{tag}'")
        if at_commit is None:
            self.tags[tag] = self.head
        else:
            self.tags[tag] = self.tags.get(at_commit, at_commit)

    def push(
        self,
        remote: str,
        ref: str | None = None,
        force: bool = False,
        upstream: bool = False,
        tag: bool = False,
    ) -> None:
        self._record("push", remote, ref, force, upstream, tag)

    def fetch_tags(self, remote: str) -> None:
        self._record("fetch_tags", remote)

    def pull(self, remote: str) -> None:
        self._record("pull", remote)

    def checkout(self, branch: str, create: bool = False) -> None:
        self._record("checkout", branch, create)
        self.branch = branch

    def commit_all(self, message: str) -> str:
        self._record("commit_all", message)
        self.commit_messages.append(message)
        self.head = f"c{len(self.commit_messages)}"
        return self.head


class FakeManifest(Manifest):
    """Manifest holding its version in memory."""

    def __init__(self, version: str) -> None:
        self.version = version
        self.writes: list[str] = []

    def read_version(self) -> str:
        return self.version

    def write_version(self, version: str) -> None:
        self.writes.append(version)
        self.version = version


@pytest.fixture
def fake_vcs() -> FakeVcs:
    """Create an empty in-memory repository on master."""
    return FakeVcs()


@pytest.fixture
def out() -> Console:
    """Create a console that records output instead of printing it.

    Read the output with ``out.file.getvalue()``.
    """
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary directory for tests.

    Yields:
        Path to temporary directory
    """
    yield tmp_path


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a temporary project directory.

    Returns:
        Path to project directory
    """
    project = temp_dir / "test-project"
    project.mkdir()
    return project


@pytest.fixture
def git_repo(project_dir: Path) -> Path:
    """Create a git repository on branch master in the project directory.

    Returns:
        Path to git repository
    """
    git(project_dir, "init", "-b", "master")
    git(project_dir, "config", "user.email", "test@test.com")
    git(project_dir, "config", "user.name", "Test User")
    git(project_dir, "config", "commit.gpgsign", "false")
    git(project_dir, "config", "tag.gpgsign", "false")
    return project_dir


@pytest.fixture
def nodejs_project(git_repo: Path) -> Path:
    """Create a committed Node.js project at version 1.3.0-pre.4.

    Returns:
        Path to project directory
    """
    package_json = {
        "name": "test-package",
        "version": "1.3.0-pre.4",
        "description": "Test package",
        "main": "index.js",
    }
    (git_repo / "package.json").write_text(json.dumps(package_json, indent=2) + "\n")
    (git_repo / "index.js").write_text("module.exports = {};\n")

    git(git_repo, "add", ".")
    git(git_repo, "commit", "-m", "Initial commit")
    return git_repo


@pytest.fixture
def origin_repo(temp_dir: Path) -> Path:
    """Create a bare repository to act as the "origin" remote.

    Returns:
        Path to bare repository
    """
    origin = temp_dir / "origin.git"
    git(temp_dir, "init", "--bare", "-b", "master", str(origin))
    return origin


@pytest.fixture
def published_project(nodejs_project: Path, origin_repo: Path) -> Path:
    """Create a Node.js project whose master tracks origin/master.

    Returns:
        Path to project directory
    """
    git(nodejs_project, "remote", "add", "origin", str(origin_repo))
    git(nodejs_project, "push", "-u", "origin", "master")
    return nodejs_project


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Temporarily clean environment variables.

    Removes RELMAN_* environment variables during test.
    """
    old_env = {}
    for key in list(os.environ.keys()):
        if key.startswith("RELMAN_"):
            old_env[key] = os.environ.pop(key)

    yield

    os.environ.update(old_env)
