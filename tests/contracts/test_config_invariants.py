"""Architectural invariant tests for the configuration system.

Prove the resolve-once, freeze-then-flow rules hold for every field.
"""

import dataclasses

import pytest

from tool_results.config import ToolResultsSettings, resolve_config
from tool_results.config.types import FIELD_ORDER, FrozenConfig


class TestConfigurationArchitecturalInvariants:
    """Architectural invariant tests for configuration system."""

    @pytest.mark.contract
    def test_field_lists_agree(self):
        """Invariant: schema, resolved and frozen configs expose the same fields."""
        frozen_fields = tuple(f.name for f in dataclasses.fields(FrozenConfig))
        assert frozen_fields == FIELD_ORDER
        assert set(ToolResultsSettings.model_fields) == set(FIELD_ORDER)

    @pytest.mark.contract
    def test_defaults_agree(self):
        """Invariant: FrozenConfig defaults match the validated schema defaults."""
        assert resolve_config().to_frozen() == FrozenConfig()

    @pytest.mark.contract
    def test_every_field_has_an_origin(self, monkeypatch):
        """Invariant: Every configuration field must have traceable source."""
        monkeypatch.setenv("TOOL_RESULTS_LOG_PREVIEW_CHARS", "10")
        result = resolve_config({"result_store_size": 1})
        for name in FIELD_ORDER:
            assert result.origin[name] in {"programmatic", "env", "file", "default"}

    @pytest.mark.contract
    def test_resolution_is_pure(self):
        """Invariant: Resolving twice from the same sources yields equal configs."""
        assert resolve_config().to_frozen() == resolve_config().to_frozen()

    @pytest.mark.contract
    def test_frozen_config_is_immutable(self):
        """Invariant: Configuration flows immutably after resolution."""
        resolved = resolve_config()
        frozen = resolved.to_frozen()
        with pytest.raises(AttributeError):
            frozen.diagnostic_level = 0  # type: ignore[misc]
        with pytest.raises(AttributeError):
            resolved.diagnostic_level = 0  # type: ignore[misc]
