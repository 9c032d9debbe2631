"""Pipeline orchestrator: the single entry point for tool output.

``ToolResultProcessor.process_tool_result`` walks a record through
RECEIVED -> VALIDATION -> PARSING -> PROCESSING -> DISPLAY_PREP ->
COMPLETION, or from VALIDATION to the terminal ERROR stage. Both terminals
return a ``ProcessedToolResult``; the method never raises. An unexpected
internal exception is caught at this boundary and also reported as an
ERROR result.

Only the stats aggregator and the result store are shared between
concurrent runs; everything else is per-call state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import Any
import uuid

from tool_results.config import FrozenConfig, override_config, resolve_config
from tool_results.core.types import (
    DebugInfo,
    DisplayComponent,
    DisplayType,
    ErrorInfo,
    PipelineStats,
    ProcessedToolResult,
    ProcessingStage,
    RecoveryAttempt,
    ValidationResult,
)
from tool_results.diagnostics import DiagnosticLevel, DiagnosticLogger
from tool_results.telemetry import TelemetryContext, TelemetryContextProtocol

from .display import DisplaySynthesizer
from .recovery import RecoveryParser
from .stats import StatsAggregator
from .store import ResultStore
from .summary import ContextSummarizer
from .validator import failed_messages, read_field, validate_record

UNKNOWN_TOOL = "unknown"
FAILED_RUN_MESSAGE = "Tool result processing failed"
USER_ERROR_MESSAGE = "There was an issue processing the tool result"


def new_result_id() -> str:
    """Return a fresh correlation id: millisecond timestamp plus random suffix."""
    return f"tool_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


def _tool_name_of(record: Any) -> str:
    """Best-effort tool name for error reporting."""
    try:
        name = read_field(record, "name") if record is not None else None
    except Exception:
        return UNKNOWN_TOOL
    return name if isinstance(name, str) and name else UNKNOWN_TOOL


@dataclass(slots=True)
class _DebugTrail:
    """Mutable diagnostic state of an in-flight run; frozen at the end."""

    stage: ProcessingStage = ProcessingStage.RECEIVED
    stage_started: float = field(default_factory=time.perf_counter)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    validation_results: list[ValidationResult] = field(default_factory=list)
    stage_timings: dict[str, float] = field(default_factory=dict)
    recovery_attempts: list[RecoveryAttempt] = field(default_factory=list)
    parse_strategy: str | None = None

    def enter(self, stage: ProcessingStage) -> None:
        now = time.perf_counter()
        self.stage_timings[self.stage.value] = (now - self.stage_started) * 1000
        self.stage = stage
        self.stage_started = now

    def freeze(self, processing_time: float) -> DebugInfo:
        return DebugInfo(
            processing_time=processing_time,
            stage=self.stage,
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
            validation_results=tuple(self.validation_results),
            stage_timings=dict(self.stage_timings),
            recovery_attempts=tuple(self.recovery_attempts),
            parse_strategy=self.parse_strategy,
        )


class ToolResultProcessor:
    """Turns raw tool invocation records into processed results.

    Construct one per application and share it; collaborators are injected
    so tests can capture diagnostics or inspect stats directly.

    Attributes:
        config: Frozen configuration the components were built from.
        logger: Diagnostic logger used by every stage.
        stats: Process-wide run counters.
        store: Registry of recent results.
    """

    def __init__(
        self,
        config: FrozenConfig | None = None,
        *,
        logger: DiagnosticLogger | None = None,
        stats: StatsAggregator | None = None,
        store: ResultStore | None = None,
        parser: RecoveryParser | None = None,
        synthesizer: DisplaySynthesizer | None = None,
        summarizer: ContextSummarizer | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            config: Frozen configuration. Resolved from the environment and
                project file when omitted.
            logger: Diagnostic logger. Built from ``config.diagnostic_level``
                when omitted.
            stats: Stats aggregator, shareable between processors.
            store: Result registry. Sized from config when omitted.
            parser: Recovery parser. Uses the default strategy chain when omitted.
            synthesizer: Display synthesizer.
            summarizer: Context summarizer.
            telemetry: Telemetry hook that receives a summary of every run.
        """
        self.config = config if config is not None else resolve_config().to_frozen()
        self.logger = logger or DiagnosticLogger(self.config.diagnostic_level)
        self.stats = stats or StatsAggregator()
        self.store = store or ResultStore(
            self.config.result_store_size, self.config.result_store_max_chars
        )
        self.parser = parser or RecoveryParser(
            raw_content_preview_chars=self.config.raw_content_preview_chars,
            log_preview_chars=self.config.log_preview_chars,
            logger=self.logger,
        )
        self.synthesizer = synthesizer or DisplaySynthesizer(self.logger)
        self.summarizer = summarizer or ContextSummarizer(
            self.config.summary_message_chars
        )
        self._tele = telemetry if telemetry is not None else TelemetryContext()

        self.logger.info(
            ProcessingStage.RECEIVED,
            "ToolResultProcessor initialized",
            diagnostic_level=self.logger.level.name,
        )

    # --- Public API ---

    def process_tool_result(self, record: Any) -> ProcessedToolResult:
        """Interpret one tool invocation record. Never raises.

        Args:
            record: A ``ToolInvocationRecord``, a mapping with ``name`` and
                ``content`` keys, an object with those attributes, or None.

        Returns:
            The processed result. ``success`` is False for invalid records
            and for content nothing could be recovered from.
        """
        start = time.perf_counter()
        result_id = new_result_id()
        trail = _DebugTrail()

        try:
            result = self._run(record, result_id, start, trail)
        except Exception as e:
            result = self._internal_error_result(record, result_id, start, trail, e)

        completed = result.debug_info.stage is ProcessingStage.COMPLETION
        self.stats.record(completed, result.debug_info.processing_time)
        self._tele.record(result)
        if not self.store.add(result) and self.store.capacity > 0:
            self.logger.debug(
                ProcessingStage.COMPLETION,
                "Result too large to keep for lookup",
                result_id=result_id,
                max_chars=self.store.max_chars,
            )
        return result

    def set_diagnostic_level(self, level: DiagnosticLevel | str | int) -> None:
        """Change diagnostic verbosity at runtime."""
        self.logger.set_level(level)
        self.logger.info(
            ProcessingStage.RECEIVED,
            "Diagnostic level changed",
            new_level=self.logger.level.name,
        )

    def get_stats(self) -> PipelineStats:
        """Snapshot of run counters across every call on this processor's stats."""
        return self.stats.snapshot()

    def reset_stats(self) -> None:
        """Zero the run counters."""
        self.stats.reset()
        self.logger.info(ProcessingStage.RECEIVED, "Processing stats reset")

    def get_result(self, result_id: str) -> ProcessedToolResult | None:
        """Look up a recent result by id."""
        return self.store.get(result_id)

    def cleanup(self, max_age_seconds: float | None = None) -> int:
        """Forget stored results older than ``max_age_seconds``.

        Defaults to the configured retention period. Returns the number of
        results dropped.
        """
        max_age = (
            max_age_seconds
            if max_age_seconds is not None
            else self.config.result_retention_seconds
        )
        removed = self.store.cleanup(max_age)
        self.logger.debug(
            ProcessingStage.COMPLETION, "Stored results cleaned up", removed=removed
        )
        return removed

    # --- Stages ---

    def _run(
        self, record: Any, result_id: str, start: float, trail: _DebugTrail
    ) -> ProcessedToolResult:
        raw_name = read_field(record, "name") if record is not None else None
        raw_content = read_field(record, "content") if record is not None else None
        self.logger.info(
            ProcessingStage.RECEIVED,
            "Processing tool result",
            result_id=result_id,
            tool_name=raw_name if isinstance(raw_name, str) else None,
            has_content=isinstance(raw_content, str) and bool(raw_content),
            content_length=len(raw_content) if isinstance(raw_content, str) else 0,
        )

        trail.enter(ProcessingStage.VALIDATION)
        trail.validation_results = validate_record(record)
        failed = failed_messages(trail.validation_results)
        self.logger.debug(
            ProcessingStage.VALIDATION,
            "Validation completed",
            total_checks=len(trail.validation_results),
            failed=len(failed),
        )
        if failed:
            tool_name = _tool_name_of(record)
            return self._validation_error_result(
                tool_name, failed, result_id, start, trail
            )

        tool_name = raw_name
        content = raw_content
        if len(content) > self.config.max_content_chars:
            trail.warnings.append(
                f"Content truncated from {len(content)} to "
                f"{self.config.max_content_chars} characters"
            )
            content = content[: self.config.max_content_chars]

        trail.enter(ProcessingStage.PARSING)
        outcome = self.parser.parse(content)
        trail.warnings.extend(outcome.warnings)
        trail.recovery_attempts = list(outcome.attempts)
        trail.parse_strategy = outcome.strategy
        payload = outcome.payload

        trail.enter(ProcessingStage.PROCESSING)
        summary = self.summarizer.summarize(payload, tool_name)

        trail.enter(ProcessingStage.DISPLAY_PREP)
        components = self.synthesizer.synthesize(payload, tool_name)

        trail.enter(ProcessingStage.COMPLETION)
        processing_time = (time.perf_counter() - start) * 1000
        result = ProcessedToolResult(
            id=result_id,
            success=payload.success,
            message=payload.message,
            data=payload.data,
            display_components=tuple(components),
            ai_context_summary=summary,
            debug_info=trail.freeze(processing_time),
            tool_name=tool_name,
            created_at=time.time(),
        )

        self.logger.info(
            ProcessingStage.COMPLETION,
            "Tool result processed",
            result_id=result_id,
            processing_time=processing_time,
            parse_strategy=outcome.strategy,
            has_image=result.has_image,
            display_components=len(components),
        )
        return result

    def _validation_error_result(
        self,
        tool_name: str,
        failed: list[str],
        result_id: str,
        start: float,
        trail: _DebugTrail,
    ) -> ProcessedToolResult:
        message = f"Validation failed: {', '.join(failed)}"
        error_info = ErrorInfo(
            error_type="validation_failed",
            user_message=USER_ERROR_MESSAGE,
            technical_details=message,
            retryable=False,
            suggested_actions=(
                "Check that the tool returned a name and non-empty content",
                "Contact support if issue persists",
            ),
        )
        return self._error_result(tool_name, message, error_info, result_id, start, trail)

    def _internal_error_result(
        self,
        record: Any,
        result_id: str,
        start: float,
        trail: _DebugTrail,
        error: Exception,
    ) -> ProcessedToolResult:
        message = f"Internal error: {type(error).__name__}: {error}"
        tool_name = _tool_name_of(record)
        error_info = ErrorInfo(
            error_type="internal_error",
            user_message=USER_ERROR_MESSAGE,
            technical_details=message,
            retryable=True,
            suggested_actions=(
                "Try the request again",
                "Contact support if issue persists",
            ),
        )
        self.logger.error(
            trail.stage,
            "Unexpected failure while processing tool result",
            result_id=result_id,
            error=message,
        )
        return self._error_result(tool_name, message, error_info, result_id, start, trail)

    def _error_result(
        self,
        tool_name: str,
        message: str,
        error_info: ErrorInfo,
        result_id: str,
        start: float,
        trail: _DebugTrail,
    ) -> ProcessedToolResult:
        trail.errors.append(message)
        trail.enter(ProcessingStage.ERROR)
        processing_time = (time.perf_counter() - start) * 1000

        self.logger.error(
            ProcessingStage.ERROR,
            FAILED_RUN_MESSAGE,
            result_id=result_id,
            error=message,
            processing_time=processing_time,
        )

        return ProcessedToolResult(
            id=result_id,
            success=False,
            message=FAILED_RUN_MESSAGE,
            data={"error": message},
            display_components=(
                DisplayComponent(
                    type=DisplayType.ERROR,
                    content=USER_ERROR_MESSAGE,
                    priority=1,
                    validation_passed=True,
                    metadata={
                        "technicalError": message,
                        "errorType": error_info.error_type,
                    },
                ),
            ),
            ai_context_summary=self.summarizer.summarize_error(tool_name, message),
            debug_info=trail.freeze(processing_time),
            tool_name=tool_name,
            error_info=error_info,
            created_at=time.time(),
        )


def create_processor(
    config: FrozenConfig | None = None, **overrides: Any
) -> ToolResultProcessor:
    """Build a processor for an application's composition root.

    Args:
        config: Frozen configuration to start from. Resolved from the
            environment and project file when omitted.
        **overrides: Configuration fields to override. Validated against
            the settings schema in both cases.

    Raises:
        ConfigurationError: If an override is invalid.
    """
    if config is None:
        config = resolve_config(overrides or None).to_frozen()
    elif overrides:
        config = override_config(config, overrides)
    return ToolResultProcessor(config)
