"""Release management for maintenance-branch based projects."""

__version__ = "0.1.0"

from relman.exceptions import (
    ConfigurationError,
    GitError,
    ManifestError,
    PreconditionError,
    ReleaseError,
    UnknownRefError,
    ValidationError,
)

__all__ = [
    "__version__",
    "ReleaseError",
    "ConfigurationError",
    "ValidationError",
    "PreconditionError",
    "GitError",
    "UnknownRefError",
    "ManifestError",
]
