"""Project file configuration loading.

Reads the ``[tool.tool_results]`` table of the nearest ``pyproject.toml``.
The location can be pinned with ``TOOL_RESULTS_PYPROJECT_PATH``.
"""

import os
from pathlib import Path
import tomllib
from typing import Any


class ConfigFileError(Exception):
    """Raised when configuration file loading fails."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        """Initialize with file path, message, and optional cause."""
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


class FileConfigLoader:
    """Loads configuration from a project's ``pyproject.toml``."""

    def load_project_config(self, project_root: Path | None = None) -> dict[str, Any]:
        """Load the ``[tool.tool_results]`` table.

        Args:
            project_root: Directory to search upward from. Defaults to the
                current working directory.

        Returns:
            The table's values, or an empty dict when there is no file or
            no table.

        Raises:
            ConfigFileError: If the file exists but is not valid TOML or the
                table is not a table.
        """
        pyproject_path = self._find_pyproject_toml(project_root)
        if pyproject_path is None:
            return {}

        try:
            with pyproject_path.open(mode="rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(
                pyproject_path, f"Failed to parse TOML: {e}", cause=e
            ) from e

        section = data.get("tool", {}).get("tool_results", {})
        if not isinstance(section, dict):
            raise ConfigFileError(
                pyproject_path, "[tool.tool_results] must be a table"
            )
        return dict(section)

    def _find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        override = os.getenv("TOOL_RESULTS_PYPROJECT_PATH")
        if override:
            path = Path(override)
            return path if path.exists() else None

        current = Path(start_dir or Path.cwd()).resolve()
        while True:
            candidate = current / "pyproject.toml"
            if candidate.exists():
                return candidate
            if current == current.parent:
                return None
            current = current.parent
