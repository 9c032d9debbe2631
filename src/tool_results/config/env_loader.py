"""Environment variable configuration loading."""

import os
from typing import Any

from tool_results.exceptions import ConfigurationError

from .schema import ToolResultsSettings
from .types import FIELD_ORDER

ENV_PREFIX = "TOOL_RESULTS_"


class EnvironmentConfigLoader:
    """Loads configuration from ``TOOL_RESULTS_*`` environment variables."""

    def env_var_names(self) -> dict[str, str]:
        """Map each known environment variable name to its field."""
        return {f"{ENV_PREFIX}{name.upper()}": name for name in FIELD_ORDER}

    def load_env_config(self) -> dict[str, Any]:
        """Load configuration values that are set in the environment.

        Returns:
            Validated values for the fields actually present in the
            environment; defaults are not included.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        known = self.env_var_names()
        raw: dict[str, str] = {}
        for key, value in os.environ.items():
            field_name = known.get(key.upper())
            if field_name is not None:
                raw[field_name] = value

        if not raw:
            return {}

        try:
            settings = ToolResultsSettings(**raw)
        except Exception as e:
            listed = ", ".join(
                f"{ENV_PREFIX}{name.upper()}={value}" for name, value in raw.items()
            )
            raise ConfigurationError(
                f"Invalid environment variable values: {listed}. Error: {e}"
            ) from e

        return {name: getattr(settings, name) for name in raw}
