"""Bounded registry of recently processed results.

Lets callers correlate a result id from the logs with the full result
while it is still recent. The store is capped both by result count and
by an approximate character footprint, so a burst of large base64 image
payloads cannot pin hundreds of megabytes. Oldest entries are evicted
first.
"""

from collections import OrderedDict
from collections.abc import Mapping
import threading
import time
from typing import Any

from tool_results.core.types import ProcessedToolResult


def _text_size(value: Any) -> int:
    if isinstance(value, str):
        return len(value)
    if isinstance(value, Mapping):
        return sum(len(str(k)) + _text_size(v) for k, v in value.items())
    if isinstance(value, tuple | list):
        return sum(_text_size(v) for v in value)
    return 1


def result_footprint(result: ProcessedToolResult) -> int:
    """Approximate size of a result in characters.

    Counts the message, the summary and everything inside ``data``. Display
    component contents are drawn from ``data`` and are not counted twice.
    """
    return (
        len(result.message)
        + len(result.ai_context_summary)
        + _text_size(result.data)
    )


class ResultStore:
    """Thread-safe mapping of result id to result, capped by count and size."""

    def __init__(self, capacity: int = 256, max_chars: int = 50_000_000) -> None:
        """Initialize the store.

        Args:
            capacity: Most results kept. 0 disables retention.
            max_chars: Approximate character budget across all kept results.
        """
        self.capacity = capacity
        self.max_chars = max_chars
        self._lock = threading.Lock()
        self._results: OrderedDict[str, tuple[ProcessedToolResult, int]] = OrderedDict()
        self._total_chars = 0

    def __len__(self) -> int:  # noqa: D105
        with self._lock:
            return len(self._results)

    @property
    def total_chars(self) -> int:
        """Approximate footprint of everything currently stored."""
        with self._lock:
            return self._total_chars

    def add(self, result: ProcessedToolResult) -> bool:
        """Keep ``result``, evicting the oldest entries past either bound.

        Returns:
            False when the result was not retained: retention is disabled
            or the result alone exceeds ``max_chars``.
        """
        if self.capacity <= 0:
            return False
        size = result_footprint(result)
        if size > self.max_chars:
            return False
        with self._lock:
            self._discard(result.id)
            self._results[result.id] = (result, size)
            self._total_chars += size
            while (
                len(self._results) > self.capacity
                or self._total_chars > self.max_chars
            ):
                _, (_, evicted) = self._results.popitem(last=False)
                self._total_chars -= evicted
        return True

    def get(self, result_id: str) -> ProcessedToolResult | None:  # noqa: D102
        with self._lock:
            entry = self._results.get(result_id)
        return entry[0] if entry is not None else None

    def cleanup(self, max_age_seconds: float, *, now: float | None = None) -> int:
        """Drop results older than ``max_age_seconds``.

        Returns:
            Number of results removed.
        """
        cutoff = (time.time() if now is None else now) - max_age_seconds
        with self._lock:
            stale = [
                rid for rid, (r, _) in self._results.items() if r.created_at < cutoff
            ]
            for rid in stale:
                self._discard(rid)
        return len(stale)

    def _discard(self, result_id: str) -> None:
        entry = self._results.pop(result_id, None)
        if entry is not None:
            self._total_chars -= entry[1]
