"""Configuration loading and management for git-quads.

Configuration sources are merged in priority order:
    1. Defaults (defined in ImportConfig)
    2. Global config (~/.git-quads.toml)
    3. Project config (./git-quads.toml)
    4. Explicit config file
    5. Environment variables (GITQUADS_* prefix)
    6. CLI overrides (passed as kwargs)

The predicate vocabulary is not configurable; see ``graph.vocabulary``.

Example:
    >>> config = load_config(batch=False)
    >>> config.batch
    False
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, ErrorCode

Verbosity = Literal["quiet", "normal", "verbose"]


@dataclass(frozen=True)
class ImportConfig:
    """Configuration for an import run.

    Attributes:
        batch: Use the destination's batch write when it has one
        dedupe_people: Write person facts only the first time a person is seen
        gephi_hints: Mark literal-valued predicates as inline node attributes
        git_executable: Name or path of the git binary
        git_timeout_seconds: Timeout for each git subprocess call
        verbosity: Logging verbosity level
    """

    batch: bool = True
    dedupe_people: bool = False
    gephi_hints: bool = True

    git_executable: str = "git"
    git_timeout_seconds: int = 60

    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.git_timeout_seconds < 1:
            raise ValueError("git_timeout_seconds must be at least 1")
        if not self.git_executable:
            raise ValueError("git_executable must not be empty")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError(
                f"verbosity must be one of quiet/normal/verbose, got '{self.verbosity}'"
            )


DEFAULT_CONFIG = ImportConfig()


def load_config(config_file: Optional[Path] = None, **overrides) -> ImportConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored so unset CLI options keep lower-priority values

    Returns:
        Validated ImportConfig instance

    Raises:
        ConfigurationError: If a config file or value is invalid
    """
    merged: dict = {}

    global_config = Path.home() / ".git-quads.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / "git-quads.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(
                f"Config file not found: {config_file}",
                ErrorCode.GQ400,
                context={"path": str(config_file)},
            )
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ImportConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}", ErrorCode.GQ401) from e


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from GITQUADS_* environment variables.

    Supported environment variables:
        GITQUADS_BATCH: bool (true/false/1/0)
        GITQUADS_DEDUPE_PEOPLE: bool
        GITQUADS_GEPHI_HINTS: bool
        GITQUADS_GIT_EXECUTABLE: str
        GITQUADS_GIT_TIMEOUT_SECONDS: int
        GITQUADS_VERBOSITY: quiet/normal/verbose
    """
    type_hints = get_type_hints(ImportConfig)

    result: dict[str, Any] = {}

    for field_name in ImportConfig.__dataclass_fields__:
        env_key = f"GITQUADS_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid {env_key}: {e}", ErrorCode.GQ401, context={"variable": env_key}
            ) from e
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If the file can't be read or parsed
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        # Python 3.10
        import tomli as tomllib  # type: ignore

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(
            f"Invalid config file '{path}': {e}", ErrorCode.GQ400, context={"path": str(path)}
        ) from e
