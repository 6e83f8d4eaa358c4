"""Configuration management for relman."""

from relman.config.loader import load_settings
from relman.config.models import (
    GitConfig,
    ReleaseSettings,
    TagsConfig,
    VersionConfig,
)

__all__ = [
    "load_settings",
    "ReleaseSettings",
    "GitConfig",
    "VersionConfig",
    "TagsConfig",
]
