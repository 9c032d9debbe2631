"""Unit tests for configuration resolution.

These tests verify the core behaviors of the configuration module:
- Loading settings from environment variables and pyproject.toml.
- Prioritizing explicit configuration over ambient context.
- Rejecting invalid values with a ConfigurationError.
"""

import pytest

from tool_results.config import FileConfigLoader, resolve_config
from tool_results.config.env_loader import EnvironmentConfigLoader
from tool_results.config.file_loader import ConfigFileError
from tool_results.diagnostics import DiagnosticLevel
from tool_results.exceptions import ConfigurationError

pytestmark = pytest.mark.unit


class TestConfigurationSystem:
    """Resolution of each source and their precedence."""

    def test_defaults_without_any_source(self):
        resolved = resolve_config()
        assert resolved.diagnostic_level is DiagnosticLevel.DEBUG
        assert resolved.raw_content_preview_chars == 200
        assert resolved.log_preview_chars == 50
        assert resolved.max_content_chars == 10_000_000
        assert resolved.result_store_size == 256
        assert set(resolved.origin.values()) == {"default"}

    def test_environment_values(self, monkeypatch):
        monkeypatch.setenv("TOOL_RESULTS_DIAGNOSTIC_LEVEL", "WARN")
        monkeypatch.setenv("TOOL_RESULTS_RESULT_STORE_SIZE", "12")

        resolved = resolve_config()

        assert resolved.diagnostic_level is DiagnosticLevel.WARN
        assert resolved.result_store_size == 12
        assert resolved.origin["diagnostic_level"] == "env"
        assert resolved.origin["log_preview_chars"] == "default"

    def test_project_file_values(self, write_pyproject):
        write_pyproject(
            "[tool.tool_results]\n"
            'diagnostic_level = "trace"\n'
            "summary_message_chars = 80\n"
        )
        resolved = resolve_config()
        assert resolved.diagnostic_level is DiagnosticLevel.TRACE
        assert resolved.summary_message_chars == 80
        assert resolved.origin["summary_message_chars"] == "file"

    def test_precedence_programmatic_over_env_over_file(
        self, monkeypatch, write_pyproject
    ):
        write_pyproject(
            "[tool.tool_results]\n"
            'diagnostic_level = "trace"\n'
            "log_preview_chars = 10\n"
            "result_store_size = 5\n"
        )
        monkeypatch.setenv("TOOL_RESULTS_DIAGNOSTIC_LEVEL", "info")
        monkeypatch.setenv("TOOL_RESULTS_LOG_PREVIEW_CHARS", "20")

        resolved = resolve_config({"diagnostic_level": "error"})

        assert resolved.diagnostic_level is DiagnosticLevel.ERROR
        assert resolved.log_preview_chars == 20
        assert resolved.result_store_size == 5
        assert resolved.origin["diagnostic_level"] == "programmatic"
        assert resolved.origin["log_preview_chars"] == "env"
        assert resolved.origin["result_store_size"] == "file"

    def test_unknown_programmatic_keys_are_ignored(self):
        resolved = resolve_config({"not_a_field": 1})
        assert "not_a_field" not in resolved.origin

    def test_audit_lists_every_field_with_origin(self, monkeypatch):
        monkeypatch.setenv("TOOL_RESULTS_LOG_PREVIEW_CHARS", "20")
        audit = resolve_config({"diagnostic_level": "info"}).audit()
        lines = audit.splitlines()
        assert len(lines) == 8
        assert "diagnostic_level: programmatic:info" in lines
        assert "log_preview_chars: env:TOOL_RESULTS_LOG_PREVIEW_CHARS=20" in lines
        assert "result_store_size: default:256" in lines
        assert "result_store_max_chars: default:50000000" in lines

    def test_to_frozen_is_immutable(self):
        frozen = resolve_config().to_frozen()
        with pytest.raises(AttributeError):
            frozen.result_store_size = 1  # type: ignore[misc]


class TestInvalidConfiguration:
    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("TOOL_RESULTS_DIAGNOSTIC_LEVEL", "loud"),
            ("TOOL_RESULTS_RESULT_STORE_SIZE", "-3"),
            ("TOOL_RESULTS_SUMMARY_MESSAGE_CHARS", "abc"),
        ],
    )
    def test_invalid_environment_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError, match=name):
            resolve_config()

    def test_invalid_programmatic_value(self):
        with pytest.raises(ConfigurationError, match="Configuration validation failed"):
            resolve_config({"result_retention_seconds": 0})

    def test_configuration_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve_config({"summary_message_chars": 1})

    def test_malformed_project_file(self, write_pyproject):
        write_pyproject("[tool.tool_results\nbroken")
        with pytest.raises(ConfigurationError, match="Failed to parse TOML"):
            resolve_config()


class TestLoaders:
    def test_env_loader_reports_only_present_fields(self, monkeypatch):
        monkeypatch.setenv("TOOL_RESULTS_LOG_PREVIEW_CHARS", "7")
        assert EnvironmentConfigLoader().load_env_config() == {"log_preview_chars": 7}

    def test_env_var_names_cover_every_field(self):
        names = EnvironmentConfigLoader().env_var_names()
        assert names["TOOL_RESULTS_DIAGNOSTIC_LEVEL"] == "diagnostic_level"
        assert len(names) == 8

    def test_file_loader_without_table(self, write_pyproject):
        write_pyproject('[project]\nname = "demo"\n')
        assert FileConfigLoader().load_project_config() == {}

    def test_file_loader_without_file(self):
        assert FileConfigLoader().load_project_config() == {}

    def test_file_loader_rejects_non_table(self, write_pyproject):
        write_pyproject('[tool]\ntool_results = "nope"\n')
        with pytest.raises(ConfigFileError, match="must be a table"):
            FileConfigLoader().load_project_config()

    def test_file_loader_walks_up_from_project_root(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TOOL_RESULTS_PYPROJECT_PATH")
        root = tmp_path / "repo"
        nested = root / "a" / "b"
        nested.mkdir(parents=True)
        (root / "pyproject.toml").write_text(
            "[tool.tool_results]\nresult_store_size = 9\n", encoding="utf-8"
        )
        assert FileConfigLoader().load_project_config(nested) == {"result_store_size": 9}
