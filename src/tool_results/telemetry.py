"""Per-run telemetry for the tool result pipeline.

Reporting is off unless ``TOOL_RESULTS_TELEMETRY=1`` (or ``DEBUG=1``) is
set when the context is created and at least one reporter is supplied.
When on, every processed result is condensed into a ``RunSummary`` (tool,
terminal stage, winning parse strategy, strategies that declined and stage
timings) and handed to each reporter. A failing reporter is logged and
never affects the run.
"""

from __future__ import annotations

from collections import Counter, deque
from collections.abc import Iterable
from dataclasses import dataclass
import logging
import os
from types import MappingProxyType
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from tool_results.core.types import ProcessingStage

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tool_results.core.types import ProcessedToolResult

log = logging.getLogger(__name__)


def telemetry_enabled() -> bool:
    """Return True when telemetry is switched on through the environment."""
    return os.getenv("TOOL_RESULTS_TELEMETRY") == "1" or os.getenv("DEBUG") == "1"


@dataclass(frozen=True, slots=True)
class RunSummary:
    """What telemetry sees of one processed result. Times are in milliseconds."""

    result_id: str
    tool_name: str
    stage: ProcessingStage
    success: bool
    parse_strategy: str | None
    declined_strategies: tuple[str, ...]
    processing_time: float
    stage_timings: Mapping[str, float]

    @property
    def completed(self) -> bool:  # noqa: D102
        return self.stage is ProcessingStage.COMPLETION

    @classmethod
    def from_result(cls, result: ProcessedToolResult) -> RunSummary:
        """Condense a result, leaving out its payload data."""
        debug = result.debug_info
        return cls(
            result_id=result.id,
            tool_name=result.tool_name,
            stage=debug.stage,
            success=result.success,
            parse_strategy=debug.parse_strategy,
            declined_strategies=tuple(
                a.strategy for a in debug.recovery_attempts if not a.successful
            ),
            processing_time=debug.processing_time,
            stage_timings=MappingProxyType(dict(debug.stage_timings)),
        )


@runtime_checkable
class TelemetryReporter(Protocol):
    """Receives one summary per processed result."""

    def record_run(self, run: RunSummary) -> None: ...  # noqa: D102


class _DisabledTelemetry:
    __slots__ = ()

    def record(self, result: ProcessedToolResult) -> None:  # noqa: ARG002
        pass


class _ReportingTelemetry:
    __slots__ = ("reporters",)

    def __init__(self, reporters: Iterable[TelemetryReporter]) -> None:
        self.reporters = tuple(reporters)

    def record(self, result: ProcessedToolResult) -> None:
        run = RunSummary.from_result(result)
        for reporter in self.reporters:
            try:
                reporter.record_run(run)
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed for %s: %s",
                    type(reporter).__name__,
                    run.result_id,
                    e,
                    exc_info=True,
                )


_DISABLED = _DisabledTelemetry()

type TelemetryContextProtocol = _ReportingTelemetry | _DisabledTelemetry


def TelemetryContext(  # noqa: N802
    *reporters: TelemetryReporter, enabled: bool | None = None
) -> TelemetryContextProtocol:
    """Return the telemetry hook the processor reports runs through.

    The shared disabled instance is returned when telemetry is off or no
    reporters are given. ``enabled`` overrides the environment check.
    """
    is_enabled = telemetry_enabled() if enabled is None else enabled
    if is_enabled and reporters:
        return _ReportingTelemetry(reporters)
    return _DISABLED


class MemoryReporter:
    """Keeps the most recent run summaries in memory; for development and tests."""

    def __init__(self, max_runs: int = 1000) -> None:  # noqa: D107
        self.runs: deque[RunSummary] = deque(maxlen=max_runs)

    def record_run(self, run: RunSummary) -> None:  # noqa: D102
        self.runs.append(run)

    def strategy_counts(self) -> Counter[str]:
        """How often each parse strategy produced the payload."""
        return Counter(r.parse_strategy for r in self.runs if r.parse_strategy)

    def declined_counts(self) -> Counter[str]:
        """How often each strategy declined the content it was given."""
        return Counter(s for r in self.runs for s in r.declined_strategies)

    def mean_stage_time(self, stage: ProcessingStage | str) -> float | None:
        """Average milliseconds spent in ``stage``, or None if never timed."""
        key = stage.value if isinstance(stage, ProcessingStage) else stage
        times = [r.stage_timings[key] for r in self.runs if key in r.stage_timings]
        return sum(times) / len(times) if times else None
