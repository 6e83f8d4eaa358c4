"""Names derived from the manifest version for one release run.

Everything a workflow tags, pushes, or checks out is computed once,
from the version recorded in the manifest when the run starts. Later
bumps during the run do not change these names.
"""

import re
from dataclasses import dataclass

from relman.exceptions import ManifestError


@dataclass(frozen=True)
class ReleaseContext:
    """Tag and branch names for a release of ``major.minor.patch``.

    Attributes:
        major: Major version number
        minor: Minor version number
        patch: Patch version number
        prerelease_counter: N in ``-pre.N``, None for a plain release version
        tag_prefix: Prefix of version tags
        latest_tag: Name of the floating "newest release" tag
        prerelease_name: Prerelease identifier
    """

    major: int
    minor: int
    patch: int
    prerelease_counter: int | None = None
    tag_prefix: str = "v"
    latest_tag: str = "latest"
    prerelease_name: str = "pre"

    @classmethod
    def from_version(
        cls,
        version: str,
        tag_prefix: str = "v",
        latest_tag: str = "latest",
        prerelease_name: str = "pre",
    ) -> "ReleaseContext":
        """Build a context from a manifest version such as ``1.3.0-pre.2``.

        Raises:
            ManifestError: If the version is not ``X.Y.Z`` or ``X.Y.Z-<name>.N``
        """
        pattern = re.compile(
            rf"^(\d+)\.(\d+)\.(\d+)(?:-{re.escape(prerelease_name)}\.(\d+))?$"
        )
        match = pattern.match(version.strip())
        if not match:
            raise ManifestError(
                f"Unsupported manifest version: '{version}'",
                details=f"Expected X.Y.Z or X.Y.Z-{prerelease_name}.N",
                fix_hint="Set the manifest version to a release or prerelease version",
            )
        counter = match.group(4)
        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2)),
            patch=int(match.group(3)),
            prerelease_counter=int(counter) if counter is not None else None,
            tag_prefix=tag_prefix,
            latest_tag=latest_tag,
            prerelease_name=prerelease_name,
        )

    @property
    def patch_version(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def minor_version(self) -> str:
        return f"{self.major}.{self.minor}"

    @property
    def pre_version(self) -> str:
        if self.prerelease_counter is None:
            return self.patch_version
        return f"{self.patch_version}-{self.prerelease_name}.{self.prerelease_counter}"

    @property
    def pre_tag(self) -> str:
        return f"{self.tag_prefix}{self.pre_version}"

    @property
    def patch_tag(self) -> str:
        return f"{self.tag_prefix}{self.patch_version}"

    @property
    def minor_tag(self) -> str:
        return f"{self.tag_prefix}{self.minor_version}"

    @property
    def maintenance_branch(self) -> str:
        return f"v{self.minor_version}.x"
