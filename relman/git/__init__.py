"""Git operations and the VcsPort abstraction.

Functions in ``operations`` and ``queries`` run git through
relman.utils.shell.run() and raise GitError on failures. Release code
uses them through a VcsPort.
"""

from relman.git.operations import checkout, commit_all, fetch, pull, push, tag
from relman.git.port import GitVcs, VcsPort
from relman.git.queries import (
    TagLookup,
    get_current_branch,
    get_uncommitted_files,
    has_staged_changes,
    has_uncommitted_changes,
    resolve_tag_commit,
    tags_pointing_at,
)

__all__ = [
    # Port
    "VcsPort",
    "GitVcs",
    "TagLookup",
    # Query operations
    "resolve_tag_commit",
    "tags_pointing_at",
    "get_current_branch",
    "get_uncommitted_files",
    "has_uncommitted_changes",
    "has_staged_changes",
    # Modification operations
    "commit_all",
    "tag",
    "push",
    "fetch",
    "pull",
    "checkout",
]
