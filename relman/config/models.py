"""Pydantic v2 settings models for release_conf.yml.

Every field has a default, so a project without a configuration file
releases from ``master`` to ``origin`` with ``v``-prefixed tags and a
``latest`` floating tag.
"""

import re

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class GitConfig(BaseModel):
    """Git remote and branch configuration."""

    remote: str = Field(
        default="origin",
        description="Git remote name",
    )
    source_branch: str = Field(
        default="master",
        description="Branch minor releases are cut from",
    )
    maintenance_branch_pattern: str = Field(
        default=r"^v[0-9]+\.[0-9]+\.x$",
        description="Regex a branch name must match for patch releases",
    )

    @field_validator("maintenance_branch_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return v


class VersionConfig(BaseModel):
    """Manifest and version naming configuration."""

    file: str = Field(
        default="package.json",
        description="JSON manifest containing the version",
    )
    field: str = Field(
        default="version",
        description="Field name in the manifest",
    )
    tag_prefix: str = Field(
        default="v",
        description="Prefix for version tags (e.g., 'v' for v1.0.0)",
    )
    prerelease_name: str = Field(
        default="pre",
        description="Prerelease identifier (e.g., 'pre' for 1.2.0-pre.3)",
    )
    commit_message: str = Field(
        default="Rev to v{version}",
        description="Message for version bump commits; {version} is replaced",
    )

    @field_validator("tag_prefix")
    @classmethod
    def validate_tag_prefix(cls, v: str) -> str:
        if v and not v.isalnum():
            raise ValueError("tag_prefix must be alphanumeric or empty")
        return v

    @field_validator("prerelease_name")
    @classmethod
    def validate_prerelease_name(cls, v: str) -> str:
        if not re.fullmatch(r"[0-9A-Za-z-]+", v):
            raise ValueError("prerelease_name must be a semver identifier")
        return v

    @field_validator("commit_message")
    @classmethod
    def validate_commit_message(cls, v: str) -> str:
        if "{version}" not in v:
            raise ValueError("commit_message must contain '{version}'")
        try:
            v.format(version="0.0.0")
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            raise ValueError(
                f"commit_message may only use the {{version}} field: {e!r}"
            ) from e
        return v


class TagsConfig(BaseModel):
    """Floating tag configuration."""

    latest: str = Field(
        default="latest",
        description="Name of the floating tag marking the newest release",
    )


class ReleaseSettings(BaseSettings):
    """Root settings model for release_conf.yml.

    Supports environment variable overrides with RELMAN_ prefix.
    Example: RELMAN_GIT__SOURCE_BRANCH=main
    """

    git: GitConfig = Field(default_factory=GitConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    tags: TagsConfig = Field(default_factory=TagsConfig)

    model_config = {
        "env_prefix": "RELMAN_",
        "env_nested_delimiter": "__",
    }
