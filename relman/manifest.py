"""Reading and bumping the version recorded in the package manifest.

A bump couples a file write with a commit: the manifest is rewritten,
then every tracked change is committed with a "Rev to v<version>"
message.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

from relman.exceptions import ManifestError, ValidationError
from relman.git.port import VcsPort
from relman.utils.version import BumpKind, increment_version


class Manifest(ABC):
    """A file that records the project's current version."""

    @abstractmethod
    def read_version(self) -> str:
        """Return the current version string.

        Raises:
            ManifestError: If the version cannot be read
        """
        ...

    @abstractmethod
    def write_version(self, version: str) -> None:
        """Replace the version string.

        Raises:
            ManifestError: If the manifest cannot be updated
        """
        ...


class PackageJsonManifest(Manifest):
    """Version stored in a JSON file such as package.json.

    Key order is preserved and the file is written with 2-space
    indentation and a trailing newline, as npm does.
    """

    def __init__(
        self,
        project_root: Path,
        file: str = "package.json",
        field: str = "version",
    ) -> None:
        self.path = project_root / file
        self.field = field

    def _load(self) -> dict:
        if not self.path.exists():
            raise ManifestError(
                f"{self.path.name} not found",
                details=f"Expected at: {self.path}",
                fix_hint="Run from the project root or pass --basePath",
            )
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ManifestError(
                f"Invalid JSON in {self.path.name}",
                details=str(e),
                fix_hint=f"Fix JSON syntax errors in {self.path.name}",
            ) from e
        except OSError as e:
            raise ManifestError(f"Failed to read {self.path.name}", details=str(e)) from e

        if not isinstance(data, dict):
            raise ManifestError(
                f"Unexpected content in {self.path.name}",
                details="Top-level JSON value must be an object",
            )
        return data

    def read_version(self) -> str:
        version = self._load().get(self.field)
        if not isinstance(version, str) or not version:
            raise ManifestError(
                f"No {self.field} field in {self.path.name}",
                fix_hint=f'Add "{self.field}": "0.1.0-pre.0" to {self.path.name}',
            )
        return version

    def write_version(self, version: str) -> None:
        data = self._load()
        data[self.field] = version
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
        except OSError as e:
            raise ManifestError(
                f"Failed to update {self.path.name} {self.field} to {version}",
                details=str(e),
            ) from e


def bump_version(
    manifest: Manifest,
    vcs: VcsPort,
    kind: BumpKind | str,
    prerelease_name: str = "pre",
    commit_message: str = "Rev to v{version}",
) -> str:
    """Increment the manifest version and commit the change.

    Args:
        manifest: Manifest holding the version
        vcs: Repository to commit in
        kind: Bump kind (see relman.utils.version.BUMP_KINDS)
        prerelease_name: Prerelease identifier for pre* bumps
        commit_message: Commit message template with a {version} field

    Returns:
        The new version

    Raises:
        ValidationError: If the current version, kind or commit message
            template is invalid; the manifest is left untouched
        ManifestError: If the manifest cannot be read or written
        GitError: If the commit fails
    """
    new_version = increment_version(
        manifest.read_version(), kind, prerelease_name=prerelease_name
    )
    try:
        message = commit_message.format(version=new_version)
    except (AttributeError, KeyError, IndexError, ValueError) as e:
        raise ValidationError(
            f"Invalid commit message template: '{commit_message}'",
            details=f"Unresolvable field: {e!r}",
            fix_hint="Use only the {version} field in version.commit_message",
        ) from e
    manifest.write_version(new_version)
    vcs.commit_all(message)
    return new_version
