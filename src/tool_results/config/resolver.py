"""Configuration resolution with precedence handling.

Precedence, highest first: Programmatic > Environment > Project file > Defaults
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from tool_results.exceptions import ConfigurationError

from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .schema import ToolResultsSettings
from .types import FIELD_ORDER, ConfigOrigin, FrozenConfig, ResolvedConfig


class ConfigResolver:
    """Merges configuration sources according to their precedence."""

    def __init__(self) -> None:  # noqa: D107
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources.

        Args:
            programmatic: Overrides with the highest precedence. Unknown
                keys are ignored.
            project_root: Directory to search for ``pyproject.toml``.

        Returns:
            ResolvedConfig with merged values and source tracking.

        Raises:
            ConfigurationError: If any source holds invalid values.
        """
        origins: dict[str, ConfigOrigin] = {}
        merged: dict[str, Any] = {}

        for name in FIELD_ORDER:
            merged[name] = ToolResultsSettings.model_fields[name].default
            origins[name] = "default"

        try:
            project_config = self.file_loader.load_project_config(project_root)
        except ConfigFileError as e:
            raise ConfigurationError(str(e)) from e
        self._apply(merged, origins, project_config, "file")

        self._apply(merged, origins, self.env_loader.load_env_config(), "env")

        if programmatic:
            self._apply(merged, origins, programmatic, "programmatic")

        validated = self._validate(merged)
        return ResolvedConfig(
            **{name: getattr(validated, name) for name in FIELD_ORDER},
            origin=origins,
        )

    def override(
        self, config: FrozenConfig, overrides: Mapping[str, Any]
    ) -> FrozenConfig:
        """Return ``config`` with ``overrides`` applied and revalidated.

        Unknown keys are ignored, as in ``resolve``.

        Raises:
            ConfigurationError: If an override is invalid.
        """
        merged = {name: getattr(config, name) for name in FIELD_ORDER}
        self._apply(merged, {}, dict(overrides), "programmatic")
        validated = self._validate(merged)
        return FrozenConfig(**{name: getattr(validated, name) for name in FIELD_ORDER})

    @staticmethod
    def _validate(merged: dict[str, Any]) -> ToolResultsSettings:
        try:
            return ToolResultsSettings.model_validate(merged)
        except Exception as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    @staticmethod
    def _apply(
        merged: dict[str, Any],
        origins: dict[str, ConfigOrigin],
        values: dict[str, Any],
        origin: ConfigOrigin,
    ) -> None:
        for name, value in values.items():
            if name in merged:
                merged[name] = value
                origins[name] = origin
