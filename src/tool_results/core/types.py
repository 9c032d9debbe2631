"""Core data types that flow through the tool result pipeline.

This module defines the immutable data structures produced at each stage
of interpreting a tool invocation: the incoming record, validation
outcomes, the recovered payload, display components and the final
processed result. Each stage produces new values rather than mutating the
previous ones, so a finished result can be shared freely between threads.
"""

from __future__ import annotations

import dataclasses
import enum
from types import MappingProxyType
import typing

from tool_results.exceptions import ToolResultsError, ValidationError

T = typing.TypeVar("T")

# --- Minimal guard helpers ---


def _freeze_value(value: typing.Any) -> typing.Any:
    """Recursively turn mappings into read-only views and lists into tuples."""
    if isinstance(value, typing.Mapping):
        return MappingProxyType({k: _freeze_value(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(_freeze_value(v) for v in value)
    return value


def _freeze_mapping(
    m: dict[str, T] | typing.Mapping[str, T] | None,
) -> typing.Mapping[str, T] | None:
    """Return a deeply immutable copy of ``m``, or None."""
    if m is None:
        return None
    return _freeze_value(m)


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def to_plain(value: typing.Any) -> typing.Any:
    """Recursively convert frozen containers into JSON-friendly builtins."""
    if isinstance(value, typing.Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, tuple | list):
        return [to_plain(v) for v in value]
    if isinstance(value, enum.Enum):
        return value.value
    return value


# --- Result Monad ---
# Recovery strategies report outcomes as values so the parser chain is a
# plain fold over strategies instead of a ladder of try/except blocks.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful outcome."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed outcome, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]


# --- Enumerations ---


class ProcessingStage(enum.StrEnum):
    """Position of a run in the pipeline's linear state machine."""

    RECEIVED = "received"
    VALIDATION = "validation"
    PARSING = "parsing"
    PROCESSING = "processing"
    DISPLAY_PREP = "display_prep"
    COMPLETION = "completion"
    ERROR = "error"


class DisplayType(enum.StrEnum):
    """Kinds of renderable output a result can carry."""

    IMAGE = "image"
    TEXT = "text"
    SUCCESS = "success"
    ERROR = "error"
    CHART = "chart"
    TABLE = "table"


class PayloadKind(enum.StrEnum):
    """Which known shape a parsed payload was recovered as."""

    STRUCTURED = "structured"
    IMAGE = "image"
    BASIC = "basic"
    FALLBACK = "fallback"


# --- Core Data Models ---


@dataclasses.dataclass(frozen=True, slots=True)
class ToolInvocationRecord:
    """The name and raw text output of one external tool call.

    Construction does not validate contents; that is the Validator's job,
    so that malformed records still flow into the pipeline and come back
    as ERROR results instead of raising at the call site.
    """

    name: str
    content: str


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of checking a single field of an invocation record."""

    field: str
    valid: bool
    message: str

    def to_dict(self) -> dict[str, typing.Any]:  # noqa: D102
        return {"field": self.field, "valid": self.valid, "message": self.message}


@dataclasses.dataclass(frozen=True, slots=True)
class ParsedToolPayload:
    """The interpreted content of a tool call.

    ``kind`` tags which recovery path produced the payload; ``data`` is the
    open-ended bag of tool-specific fields, checked narrowly where used.
    """

    success: bool
    message: str
    data: typing.Mapping[str, typing.Any] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    kind: PayloadKind = PayloadKind.STRUCTURED

    def __post_init__(self) -> None:
        """Validate field types and freeze the data mapping."""
        _require(
            condition=isinstance(self.success, bool),
            message="must be bool",
            field_name="success",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.message, str),
            message="must be str",
            field_name="message",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.data, typing.Mapping),
            message="must be a mapping",
            field_name="data",
            exc=TypeError,
        )
        object.__setattr__(self, "data", _freeze_mapping(self.data))

    @property
    def image_url(self) -> typing.Any:
        """The ``image_url`` entry of ``data`` if any."""
        return self.data.get("image_url")


@dataclasses.dataclass(frozen=True, slots=True)
class DisplayComponent:
    """A typed, prioritized unit of output for rendering.

    Lower ``priority`` values are more prominent.
    """

    type: DisplayType
    content: typing.Any
    priority: int
    validation_passed: bool = True
    metadata: typing.Mapping[str, typing.Any] | None = None

    def __post_init__(self) -> None:
        """Validate invariants and freeze metadata."""
        _require(
            condition=isinstance(self.type, DisplayType),
            message="must be a DisplayType",
            field_name="type",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.priority, int) and self.priority >= 0,
            message="must be an int >= 0",
            field_name="priority",
        )
        object.__setattr__(self, "metadata", _freeze_mapping(self.metadata))

    def to_dict(self) -> dict[str, typing.Any]:  # noqa: D102
        return {
            "type": self.type.value,
            "content": to_plain(self.content),
            "metadata": to_plain(self.metadata) if self.metadata is not None else None,
            "priority": self.priority,
            "validation_passed": self.validation_passed,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class RecoveryAttempt:
    """One recovery strategy tried against the content."""

    strategy: str
    successful: bool
    error: str | None = None

    def to_dict(self) -> dict[str, typing.Any]:  # noqa: D102
        return {
            "strategy": self.strategy,
            "successful": self.successful,
            "error": self.error,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class ErrorInfo:
    """User-facing and technical description of a failed run."""

    error_type: str
    user_message: str
    technical_details: str
    retryable: bool
    suggested_actions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, typing.Any]:  # noqa: D102
        return {
            "error_type": self.error_type,
            "user_message": self.user_message,
            "technical_details": self.technical_details,
            "retryable": self.retryable,
            "suggested_actions": list(self.suggested_actions),
        }


@dataclasses.dataclass(frozen=True, slots=True)
class DebugInfo:
    """Frozen diagnostic trail of a completed run.

    Times are in milliseconds. ``errors`` is non-empty exactly when the run
    ended in the ERROR stage.
    """

    processing_time: float
    stage: ProcessingStage
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    validation_results: tuple[ValidationResult, ...] = ()
    stage_timings: typing.Mapping[str, float] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    recovery_attempts: tuple[RecoveryAttempt, ...] = ()
    parse_strategy: str | None = None

    def __post_init__(self) -> None:
        """Validate the error/stage pairing and freeze timings."""
        _require(
            condition=bool(self.errors) == (self.stage is ProcessingStage.ERROR),
            message="errors must be non-empty exactly when stage is ERROR",
            field_name="errors",
        )
        object.__setattr__(self, "stage_timings", _freeze_mapping(self.stage_timings))

    def to_dict(self) -> dict[str, typing.Any]:  # noqa: D102
        return {
            "processing_time": self.processing_time,
            "stage": self.stage.value,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "validation_results": [v.to_dict() for v in self.validation_results],
            "stage_timings": dict(self.stage_timings),
            "recovery_attempts": [a.to_dict() for a in self.recovery_attempts],
            "parse_strategy": self.parse_strategy,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class ProcessedToolResult:
    """The single output artifact of one pipeline run.

    ``id`` exists for log correlation only; two results with equal content
    still carry different ids.
    """

    id: str
    success: bool
    message: str
    data: typing.Mapping[str, typing.Any]
    display_components: tuple[DisplayComponent, ...]
    ai_context_summary: str
    debug_info: DebugInfo
    tool_name: str = "unknown"
    error_info: ErrorInfo | None = None
    created_at: float = 0.0

    def __post_init__(self) -> None:
        """Validate result invariants and freeze the data mapping."""
        _require(
            condition=len(self.display_components) > 0,
            message="must contain at least one component",
            field_name="display_components",
        )
        _require(
            condition=all(
                a.priority <= b.priority
                for a, b in zip(
                    self.display_components,
                    self.display_components[1:],
                    strict=False,
                )
            ),
            message="must be sorted by ascending priority",
            field_name="display_components",
        )
        object.__setattr__(self, "data", _freeze_mapping(self.data))

    @property
    def has_image(self) -> bool:
        """Whether an image component is present."""
        return any(c.type is DisplayType.IMAGE for c in self.display_components)

    def components_of(self, kind: DisplayType) -> tuple[DisplayComponent, ...]:
        """Return the components of a single display type, in order."""
        return tuple(c for c in self.display_components if c.type is kind)

    def raise_for_error(self) -> None:
        """Raise if the run ended in the ERROR stage.

        Raises:
            ValidationError: If the invocation record was rejected.
            ToolResultsError: If processing failed unexpectedly.
        """
        if self.debug_info.stage is not ProcessingStage.ERROR:
            return
        details = "; ".join(self.debug_info.errors)
        if self.error_info is not None and self.error_info.error_type == "validation_failed":
            raise ValidationError(details)
        raise ToolResultsError(details)

    def to_dict(self) -> dict[str, typing.Any]:
        """Convert to plain builtins suitable for ``json.dumps``."""
        return {
            "id": self.id,
            "tool_name": self.tool_name,
            "success": self.success,
            "message": self.message,
            "data": to_plain(self.data),
            "display_components": [c.to_dict() for c in self.display_components],
            "ai_context_summary": self.ai_context_summary,
            "debug_info": self.debug_info.to_dict(),
            "error_info": self.error_info.to_dict() if self.error_info else None,
            "created_at": self.created_at,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class PipelineStats:
    """Point-in-time snapshot of the process-wide run counters."""

    total: int = 0
    success: int = 0
    errors: int = 0
    avg_time: float = 0.0

    @property
    def success_rate(self) -> float:
        """Fraction of runs that completed; 0.0 before the first run."""
        if self.total == 0:
            return 0.0
        return self.success / self.total

    def to_dict(self) -> dict[str, typing.Any]:  # noqa: D102
        return {
            "total": self.total,
            "success": self.success,
            "errors": self.errors,
            "avg_time": self.avg_time,
            "success_rate": self.success_rate,
        }
