"""Process-wide run counters shared by concurrent pipeline runs."""

import threading

from tool_results.core.types import PipelineStats


class StatsAggregator:
    """Thread-safe accumulator of run outcomes and mean latency.

    Every update happens under a single lock, so ``total`` always equals
    ``success + errors`` in any snapshot.
    """

    def __init__(self) -> None:  # noqa: D107
        self._lock = threading.Lock()
        self._total = 0
        self._success = 0
        self._errors = 0
        self._avg_time = 0.0

    def record(self, success: bool, elapsed_ms: float) -> None:  # noqa: FBT001
        """Count one run and fold its latency into the running mean."""
        with self._lock:
            self._total += 1
            if success:
                self._success += 1
            else:
                self._errors += 1
            self._avg_time += (elapsed_ms - self._avg_time) / self._total

    def snapshot(self) -> PipelineStats:
        """Return a consistent copy of the current counters."""
        with self._lock:
            return PipelineStats(
                total=self._total,
                success=self._success,
                errors=self._errors,
                avg_time=self._avg_time,
            )

    def reset(self) -> None:
        """Zero every counter. Operator action only."""
        with self._lock:
            self._total = 0
            self._success = 0
            self._errors = 0
            self._avg_time = 0.0
