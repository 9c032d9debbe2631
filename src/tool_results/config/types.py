"""Core configuration data types.

Configuration follows a resolve-once, freeze-then-flow pattern: values are
merged from every source into a ``ResolvedConfig`` that remembers where
each value came from, then frozen into the ``FrozenConfig`` the pipeline
reads.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

from tool_results.diagnostics import DiagnosticLevel

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]

FIELD_ORDER = (
    "diagnostic_level",
    "raw_content_preview_chars",
    "log_preview_chars",
    "summary_message_chars",
    "max_content_chars",
    "result_store_size",
    "result_store_max_chars",
    "result_retention_seconds",
)


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing."""

    diagnostic_level: DiagnosticLevel
    raw_content_preview_chars: int
    log_preview_chars: int
    summary_message_chars: int
    max_content_chars: int
    result_store_size: int
    result_store_max_chars: int
    result_retention_seconds: float

    # Where each field value came from
    origin: SourceMap

    def to_frozen(self) -> "FrozenConfig":
        """Convert to the immutable configuration used by the pipeline."""
        return FrozenConfig(**{name: getattr(self, name) for name in FIELD_ORDER})

    def audit(self) -> str:
        """Render one ``field: origin:value`` line per field."""
        lines = []
        for name in FIELD_ORDER:
            origin = self.origin.get(name, "default")
            value = getattr(self, name)
            if isinstance(value, DiagnosticLevel):
                value = value.name.lower()
            if origin == "env":
                lines.append(f"{name}: env:TOOL_RESULTS_{name.upper()}={value}")
            else:
                lines.append(f"{name}: {origin}:{value}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration handed to the pipeline components."""

    diagnostic_level: DiagnosticLevel = DiagnosticLevel.DEBUG
    raw_content_preview_chars: int = 200
    log_preview_chars: int = 50
    summary_message_chars: int = 200
    max_content_chars: int = 10_000_000
    result_store_size: int = 256
    result_store_max_chars: int = 50_000_000
    result_retention_seconds: float = 3600.0
