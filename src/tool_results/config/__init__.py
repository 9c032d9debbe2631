"""Configuration for the tool result pipeline.

Resolve once, freeze, then hand the ``FrozenConfig`` to the processor:

    config = resolve_config({"diagnostic_level": "info"}).to_frozen()
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import ToolResultsSettings
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Args:
        programmatic: Overrides with the highest precedence.
        project_root: Directory to search for ``pyproject.toml``. Defaults
            to the current directory and its parents.

    Raises:
        ConfigurationError: If validation fails for any source.
    """
    return _resolver.resolve(programmatic, project_root=project_root)


def override_config(config: FrozenConfig, overrides: Mapping[str, Any]) -> FrozenConfig:
    """Apply overrides to an already frozen config, validating them like any source.

    Raises:
        ConfigurationError: If an override is invalid.
    """
    return _resolver.override(config, overrides)


__all__ = [
    "ConfigFileError",
    "ConfigOrigin",
    "ConfigResolver",
    "FileConfigLoader",
    "FrozenConfig",
    "ResolvedConfig",
    "SourceMap",
    "ToolResultsSettings",
    "override_config",
    "resolve_config",
]
