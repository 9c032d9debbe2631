"""Resilient interpretation of raw tool output for AI assistants."""

import importlib.metadata
import logging

from tool_results.config import FrozenConfig, ResolvedConfig, resolve_config
from tool_results.core.types import (
    DebugInfo,
    DisplayComponent,
    DisplayType,
    ErrorInfo,
    Failure,
    ParsedToolPayload,
    PayloadKind,
    PipelineStats,
    ProcessedToolResult,
    ProcessingStage,
    RecoveryAttempt,
    Result,
    Success,
    ToolInvocationRecord,
    ValidationResult,
)
from tool_results.diagnostics import (
    DiagnosticEntry,
    DiagnosticLevel,
    DiagnosticLogger,
    DiagnosticSink,
    LoggingSink,
    MemorySink,
)
from tool_results.exceptions import (
    ConfigurationError,
    RecoveryFailure,
    ToolResultsError,
    ValidationError,
)
from tool_results.pipeline.display import DisplaySynthesizer, validate_image_url
from tool_results.pipeline.processor import ToolResultProcessor, create_processor
from tool_results.pipeline.recovery import ParseOutcome, RecoveryParser
from tool_results.pipeline.stats import StatsAggregator
from tool_results.pipeline.summary import ContextSummarizer, identify_content_type
from tool_results.pipeline.validator import validate_record
from tool_results.telemetry import (
    MemoryReporter,
    RunSummary,
    TelemetryContext,
    TelemetryReporter,
)

try:
    __version__ = importlib.metadata.version("tool-results")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Applications without logging configured should not see 'No handler found'.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Entry points
    "ToolResultProcessor",
    "create_processor",
    # Configuration
    "FrozenConfig",
    "ResolvedConfig",
    "resolve_config",
    # Data model
    "DebugInfo",
    "DisplayComponent",
    "DisplayType",
    "ErrorInfo",
    "Failure",
    "ParsedToolPayload",
    "PayloadKind",
    "PipelineStats",
    "ProcessedToolResult",
    "ProcessingStage",
    "RecoveryAttempt",
    "Result",
    "Success",
    "ToolInvocationRecord",
    "ValidationResult",
    # Pipeline components
    "ContextSummarizer",
    "DisplaySynthesizer",
    "ParseOutcome",
    "RecoveryParser",
    "StatsAggregator",
    "identify_content_type",
    "validate_image_url",
    "validate_record",
    # Diagnostics
    "DiagnosticEntry",
    "DiagnosticLevel",
    "DiagnosticLogger",
    "DiagnosticSink",
    "LoggingSink",
    "MemorySink",
    # Telemetry (extension points)
    "MemoryReporter",
    "RunSummary",
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "ConfigurationError",
    "RecoveryFailure",
    "ToolResultsError",
    "ValidationError",
]
