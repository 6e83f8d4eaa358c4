"""Finding and reading the release configuration file.

A project needs no configuration file at all: without one every setting
takes its default from ReleaseSettings, still subject to RELMAN_
environment overrides. YAML and TOML files are supported.
"""

import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, BinaryIO

import yaml
from pydantic import ValidationError as PydanticValidationError

from relman.config.models import ReleaseSettings
from relman.exceptions import ConfigurationError

SEARCH_PATHS = (
    "config/release_conf.yml",
    "config/release_conf.yaml",
    "release_conf.yml",
    "release_conf.yaml",
    "config/release.toml",
    "release.toml",
)


def _parse_file(
    path: Path,
    parse: Callable[[BinaryIO], Any],
    syntax_error: type[Exception],
    fmt: str,
) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            data = parse(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Check the --config path",
        ) from None
    except syntax_error as e:
        raise ConfigurationError(
            f"Invalid {fmt} in {path}",
            details=str(e),
            fix_hint=f"Check {fmt} syntax at the indicated line",
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid {fmt} in {path}",
            details=f"Expected a mapping at the top level, got {type(data).__name__}",
        )
    return data


def load_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML file; an empty file gives ``{}``.

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    return _parse_file(path, yaml.safe_load, yaml.YAMLError, "YAML")


def load_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file.

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    return _parse_file(path, tomllib.load, tomllib.TOMLDecodeError, "TOML")


LOADERS: dict[str, Callable[[Path], dict[str, Any]]] = {
    ".yml": load_yaml,
    ".yaml": load_yaml,
    ".toml": load_toml,
}


def find_config_file(project_root: Path) -> Path | None:
    """Return the first of SEARCH_PATHS that exists under project_root."""
    return next(
        (project_root / p for p in SEARCH_PATHS if (project_root / p).exists()),
        None,
    )


def load_settings(
    path: Path | None = None,
    project_root: Path | None = None,
) -> ReleaseSettings:
    """Build ReleaseSettings from a configuration file and the environment.

    Args:
        path: Configuration file; relative paths are taken from
            project_root. It must exist when given.
        project_root: Repository root searched when path is None
            (defaults to the current directory)

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file is missing, unreadable, malformed
            or holds invalid values
    """
    root = project_root or Path.cwd()

    if path is None:
        config_path = find_config_file(root)
    else:
        config_path = path if path.is_absolute() else root / path
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                fix_hint="Check the --config path",
            )

    data: dict[str, Any] = {}
    if config_path is not None:
        loader = LOADERS.get(config_path.suffix)
        if loader is None:
            raise ConfigurationError(
                f"Unsupported config format: {config_path.suffix or config_path.name}",
                fix_hint=f"Use one of: {', '.join(LOADERS)}",
            )
        data = loader(config_path)

    try:
        return ReleaseSettings(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {config_path or 'environment'}",
            details=str(e),
            fix_hint="Check the configuration values match expected types",
        ) from e
