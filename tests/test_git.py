"""Tests for git queries, operations and GitVcs.

Mocked tests patch relman.git.queries.run / relman.git.operations.run to
check command lines and error mapping. Integration tests run real git in
temporary repositories from conftest.py.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import git

from relman.exceptions import GitError, UnknownRefError
from relman.git import operations, queries
from relman.git.port import GitVcs
from relman.git.queries import TagLookup
from relman.utils.shell import ShellError


def completed(
    returncode: int = 0, stdout: str = "", stderr: str = ""
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr
    )


class TestTagLookup:
    """Tests for the TagLookup result type."""

    def test_not_found(self) -> None:
        lookup = TagLookup.not_found("latest")
        assert not lookup.found
        assert lookup.commit is None

    def test_found(self) -> None:
        lookup = TagLookup.at("latest", "abc123")
        assert lookup.found
        assert lookup.commit == "abc123"


class TestResolveTagCommit:
    """Tests for resolve_tag_commit."""

    def test_unknown_revision_is_not_found(self) -> None:
        """Exit status 128 means the tag does not exist."""
        with patch(
            "relman.git.queries.run",
            return_value=completed(128, stderr="fatal: bad revision 'latest'"),
        ) as mock_run:
            lookup = queries.resolve_tag_commit("latest")

        assert lookup == TagLookup.not_found("latest")
        mock_run.assert_called_once_with(
            ["git", "rev-list", "-n", "1", "latest", "--"],
            cwd=None,
            check=False,
            env={"LC_ALL": "C"},
        )

    def test_found_commit(self) -> None:
        """The first line of rev-list output is the commit."""
        with patch("relman.git.queries.run", return_value=completed(0, "abc123\n")):
            lookup = queries.resolve_tag_commit("latest")
        assert lookup == TagLookup.at("latest", "abc123")

    def test_other_failure_raises(self) -> None:
        """Any other non-zero exit is a GitError carrying git's output."""
        with patch(
            "relman.git.queries.run",
            return_value=completed(1, stderr="error: something broke"),
        ):
            with pytest.raises(GitError) as exc_info:
                queries.resolve_tag_commit("latest")
        assert "something broke" in (exc_info.value.details or "")

    def test_other_fatal_error_raises(self) -> None:
        """Exit status 128 without an unknown-revision message is a GitError."""
        with patch(
            "relman.git.queries.run",
            return_value=completed(
                128, stderr="fatal: not a git repository (or any of the parent directories): .git"
            ),
        ):
            with pytest.raises(GitError) as exc_info:
                queries.resolve_tag_commit("latest")
        assert "not a git repository" in (exc_info.value.details or "")

    def test_ambiguous_argument_is_not_found(self) -> None:
        with patch(
            "relman.git.queries.run",
            return_value=completed(
                128, stderr="fatal: ambiguous argument 'latest': unknown revision"
            ),
        ):
            assert not queries.resolve_tag_commit("latest").found

    def test_outside_repository_raises(self, temp_dir: Path) -> None:
        """A directory that is not a repository is not an absent tag."""
        with pytest.raises(GitError):
            queries.resolve_tag_commit("latest", cwd=temp_dir)

    def test_empty_output_raises(self) -> None:
        """Success without a commit id is not trusted."""
        with patch("relman.git.queries.run", return_value=completed(0, "")):
            with pytest.raises(GitError):
                queries.resolve_tag_commit("latest")


class TestQueries:
    """Tests for the remaining query functions."""

    def test_tags_pointing_at_splits_output(self) -> None:
        with patch(
            "relman.git.queries.run",
            return_value=completed(0, "latest\nv1.3.0\nv1.3.0-pre.2\n"),
        ):
            assert queries.tags_pointing_at("abc") == ["latest", "v1.3.0", "v1.3.0-pre.2"]

    def test_tags_pointing_at_failure(self) -> None:
        with patch(
            "relman.git.queries.run",
            side_effect=ShellError("git tag --points-at abc", 129, "", "bad object"),
        ):
            with pytest.raises(GitError) as exc_info:
                queries.tags_pointing_at("abc")
        assert "bad object" in (exc_info.value.details or "")

    def test_current_branch_detached_head(self) -> None:
        """Detached HEAD falls back to rev-parse."""
        with patch(
            "relman.git.queries.run",
            side_effect=[completed(0, ""), completed(0, "HEAD\n")],
        ):
            assert queries.get_current_branch() == "HEAD"

    def test_uncommitted_files(self) -> None:
        with patch(
            "relman.git.queries.run",
            return_value=completed(0, " M package.json\n?? notes.txt\n"),
        ):
            assert queries.get_uncommitted_files() == ["package.json", "notes.txt"]
            assert queries.has_uncommitted_changes()

    def test_staged_changes_exit_codes(self) -> None:
        """diff --cached exits 0 when clean, 1 when staged, other codes fail."""
        with patch("relman.git.queries.run", return_value=completed(0)):
            assert not queries.has_staged_changes()
        with patch("relman.git.queries.run", return_value=completed(1)):
            assert queries.has_staged_changes()
        with patch("relman.git.queries.run", return_value=completed(128, stderr="fatal")):
            with pytest.raises(GitError):
                queries.has_staged_changes()


class TestOperations:
    """Tests for git modification commands."""

    def test_tag_force_at_commit_peels(self) -> None:
        with patch("relman.git.operations.run") as mock_run:
            operations.tag("latest", force=True, at_commit="v1.3.1")
        mock_run.assert_called_once_with(
            ["git", "tag", "-f", "latest", "v1.3.1^{commit}"], cwd=None, check=True
        )

    def test_tag_at_head(self) -> None:
        with patch("relman.git.operations.run") as mock_run:
            operations.tag("v1.3.0")
        mock_run.assert_called_once_with(["git", "tag", "v1.3.0"], cwd=None, check=True)

    def test_tag_existing_raises(self) -> None:
        with patch(
            "relman.git.operations.run",
            side_effect=ShellError("git tag v1.3.0", 128, "", "fatal: tag 'v1.3.0' already exists"),
        ):
            with pytest.raises(GitError) as exc_info:
                operations.tag("v1.3.0")
        assert not isinstance(exc_info.value, UnknownRefError)

    def test_push_tag_force(self) -> None:
        with patch("relman.git.operations.run") as mock_run:
            operations.push("origin", "latest", force=True, is_tag=True)
        mock_run.assert_called_once_with(
            ["git", "push", "--force", "origin", "refs/tags/latest"], cwd=None, check=True
        )

    def test_push_branch_upstream(self) -> None:
        with patch("relman.git.operations.run") as mock_run:
            operations.push("origin", "v1.3.x", upstream=True)
        mock_run.assert_called_once_with(
            ["git", "push", "--set-upstream", "origin", "v1.3.x"], cwd=None, check=True
        )

    def test_push_current_branch(self) -> None:
        with patch("relman.git.operations.run") as mock_run:
            operations.push("origin")
        mock_run.assert_called_once_with(["git", "push", "origin"], cwd=None, check=True)

    def test_push_failure(self) -> None:
        with patch(
            "relman.git.operations.run",
            side_effect=ShellError("git push origin v1.3.x", 1, "", "rejected"),
        ):
            with pytest.raises(GitError) as exc_info:
                operations.push("origin", "v1.3.x")
        assert "v1.3.x" in exc_info.value.message
        assert "rejected" in (exc_info.value.details or "")

    def test_fetch_tags(self) -> None:
        with patch("relman.git.operations.run") as mock_run:
            operations.fetch("upstream", tags=True)
        mock_run.assert_called_once_with(
            ["git", "fetch", "--tags", "upstream"], cwd=None, check=True
        )

    def test_checkout_create(self) -> None:
        with patch("relman.git.operations.run") as mock_run:
            operations.checkout("v1.3.x", create=True)
        mock_run.assert_called_once_with(
            ["git", "checkout", "-b", "v1.3.x"], cwd=None, check=True
        )


class TestGitIntegration:
    """Tests against real temporary repositories."""

    def test_resolve_missing_tag(self, nodejs_project: Path) -> None:
        """A real missing tag is reported as not found."""
        lookup = queries.resolve_tag_commit("latest", cwd=nodejs_project)
        assert not lookup.found

    def test_resolve_existing_tag(self, nodejs_project: Path) -> None:
        head = git(nodejs_project, "rev-parse", "HEAD")
        git(nodejs_project, "tag", "latest")

        lookup = queries.resolve_tag_commit("latest", cwd=nodejs_project)
        assert lookup.commit == head

    def test_resolve_annotated_tag_gives_commit(self, nodejs_project: Path) -> None:
        """Annotated tags resolve to the tagged commit, not the tag object."""
        head = git(nodejs_project, "rev-parse", "HEAD")
        git(nodejs_project, "tag", "-a", "v1.3.0", "-m", "release")

        lookup = queries.resolve_tag_commit("v1.3.0", cwd=nodejs_project)
        assert lookup.commit == head

    def test_tags_pointing_at(self, nodejs_project: Path) -> None:
        for name in ("latest", "v1.3.0", "v1.3.0-pre.2"):
            git(nodejs_project, "tag", name)
        head = git(nodejs_project, "rev-parse", "HEAD")

        tags = queries.tags_pointing_at(head, cwd=nodejs_project)
        assert set(tags) == {"latest", "v1.3.0", "v1.3.0-pre.2"}

    def test_clean_and_dirty_state(self, nodejs_project: Path) -> None:
        vcs = GitVcs(nodejs_project)
        assert not vcs.has_uncommitted_changes()
        assert not vcs.has_staged_changes()

        (nodejs_project / "index.js").write_text("module.exports = 1;\n")
        assert vcs.has_uncommitted_changes()
        assert not vcs.has_staged_changes()

        git(nodejs_project, "add", "index.js")
        assert vcs.has_staged_changes()

    def test_untracked_file_is_uncommitted(self, nodejs_project: Path) -> None:
        (nodejs_project / "notes.txt").write_text("todo\n")
        assert GitVcs(nodejs_project).has_uncommitted_changes()

    def test_current_branch(self, nodejs_project: Path) -> None:
        assert GitVcs(nodejs_project).current_branch_name() == "master"

    def test_commit_all_returns_head(self, nodejs_project: Path) -> None:
        (nodejs_project / "index.js").write_text("module.exports = 2;\n")

        sha = GitVcs(nodejs_project).commit_all("Rev to v1.3.0")

        assert sha == git(nodejs_project, "rev-parse", "HEAD")
        assert git(nodejs_project, "log", "-1", "--format=%s") == "Rev to v1.3.0"

    def test_commit_all_nothing_to_commit(self, nodejs_project: Path) -> None:
        with pytest.raises(GitError):
            GitVcs(nodejs_project).commit_all("Rev to v1.3.0")

    def test_move_tag_to_other_tag_commit(self, nodejs_project: Path) -> None:
        """create_or_move_tag with at_commit places the tag on that commit."""
        first = git(nodejs_project, "rev-parse", "HEAD")
        git(nodejs_project, "tag", "v1.3.0")
        git(nodejs_project, "tag", "latest")
        (nodejs_project / "index.js").write_text("module.exports = 3;\n")
        git(nodejs_project, "commit", "-am", "change")
        git(nodejs_project, "tag", "-a", "v1.3.1", "-m", "release")
        second = git(nodejs_project, "rev-parse", "HEAD")

        vcs = GitVcs(nodejs_project)
        vcs.create_or_move_tag("latest", force=True, at_commit="v1.3.1")

        assert first != second
        assert git(nodejs_project, "rev-parse", "latest") == second

    def test_tag_at_missing_ref(self, nodejs_project: Path) -> None:
        with pytest.raises(UnknownRefError) as exc_info:
            GitVcs(nodejs_project).create_or_move_tag("latest", force=True, at_commit="v9.9.9")
        assert exc_info.value.ref == "v9.9.9"
        assert exc_info.value.exit_code == 4

    def test_push_tag_to_origin(self, published_project: Path, origin_repo: Path) -> None:
        git(published_project, "tag", "v1.3.0")

        GitVcs(published_project).push("origin", "v1.3.0", tag=True)

        assert "refs/tags/v1.3.0" in git(origin_repo, "show-ref", "--tags")

    def test_checkout_create_and_return(self, nodejs_project: Path) -> None:
        vcs = GitVcs(nodejs_project)
        vcs.checkout("v1.3.x", create=True)
        assert vcs.current_branch_name() == "v1.3.x"

        vcs.checkout("master")
        assert vcs.current_branch_name() == "master"

        with pytest.raises(GitError):
            vcs.checkout("v1.3.x", create=True)
