"""Errors that abort a release.

The CLI exits with the exit_code of the error that stopped the run:

    1  any other release failure
    2  configuration file or values
    3  invalid version, or a precondition such as the current branch
    4  git command failed
    9  package manifest
"""


class ReleaseError(Exception):
    """A release step cannot proceed.

    ``message`` is one line for the operator; ``details`` holds the
    underlying output (for git failures, the command and what it printed)
    and ``fix_hint`` what to run next.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"\nDetails: {self.details}")
        if self.fix_hint:
            parts.append(f"\nFix: {self.fix_hint}")
        return "".join(parts)


class ConfigurationError(ReleaseError):
    """The release configuration cannot be used.

    The file given with --config is missing, a file is not valid YAML or
    TOML, or a value fails validation.
    """

    exit_code = 2


class ValidationError(ReleaseError):
    """Invalid version strings or bump requests."""

    exit_code = 3


class PreconditionError(ReleaseError):
    """Release preconditions are not met.

    Raised before any repository mutation when:
    - The current branch is not the expected one
    - The working tree has uncommitted or untracked changes
    - The index has staged changes
    """

    exit_code = 3


class GitError(ReleaseError):
    """A git command exited with an unexpected status."""

    exit_code = 4


class UnknownRefError(GitError):
    """A tag or branch does not exist where one is required."""

    def __init__(
        self,
        ref: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        super().__init__(f"Unknown git reference '{ref}'", details, fix_hint)
        self.ref = ref


class ManifestError(ReleaseError):
    """Package manifest failures.

    Raised when:
    - The manifest file is missing or not valid JSON
    - The version field is missing or has an unexpected format
    - The manifest cannot be written back
    """

    exit_code = 9
