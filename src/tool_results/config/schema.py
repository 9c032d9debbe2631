"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces
configuration values from environment, project file and programmatic
sources into the correct types with proper defaults.
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tool_results.diagnostics import DiagnosticLevel


class ToolResultsSettings(BaseSettings):
    """Pydantic settings schema for the tool result pipeline.

    Reads ``TOOL_RESULTS_*`` environment variables; unknown variables are
    ignored for forward compatibility.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOL_RESULTS_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    diagnostic_level: DiagnosticLevel = Field(
        default=DiagnosticLevel.DEBUG,
        description="Most verbose diagnostic level that is emitted",
    )

    raw_content_preview_chars: int = Field(
        default=200,
        description="Characters of raw content kept by the fallback payload",
        ge=0,
    )

    log_preview_chars: int = Field(
        default=50,
        description="Characters of raw content included in trace logs",
        ge=0,
    )

    summary_message_chars: int = Field(
        default=200,
        description="Maximum message length embedded in the context summary",
        ge=16,
    )

    max_content_chars: int = Field(
        default=10_000_000,
        description="Content longer than this is truncated before parsing",
        ge=1,
    )

    result_store_size: int = Field(
        default=256,
        description="How many recent results to keep for lookup (0 disables)",
        ge=0,
    )

    result_store_max_chars: int = Field(
        default=50_000_000,
        description="Approximate character budget shared by all stored results",
        ge=1,
    )

    result_retention_seconds: float = Field(
        default=3600.0,
        description="Default age after which cleanup() drops stored results",
        gt=0,
    )

    @field_validator("diagnostic_level", mode="before")
    @classmethod
    def parse_level(cls, v: Any) -> DiagnosticLevel:
        """Accept level names in any case as well as numbers."""
        return DiagnosticLevel.parse(v)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary keyed by field name."""
        return {name: getattr(self, name) for name in type(self).model_fields}
