"""Leveled, stage-tagged diagnostic logging.

Every pipeline component reports through a single injected
``DiagnosticLogger``. The logger owns the verbosity threshold and the list
of sinks; components never decide where output ends up.

By default entries are forwarded to the standard ``logging`` module, so
applications configure handlers and formatting the usual way. Tests can
attach a ``MemorySink`` and assert on captured entries instead of stdout.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
import enum
import logging
import time
from typing import Any, Protocol, runtime_checkable

from tool_results.core.types import ProcessingStage

log = logging.getLogger(__name__)

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class DiagnosticLevel(enum.IntEnum):
    """Verbosity levels; a higher value is chattier."""

    ERROR = 0
    WARN = 1
    INFO = 2
    DEBUG = 3
    TRACE = 4

    @classmethod
    def parse(cls, value: Any) -> DiagnosticLevel:
        """Coerce a level name (any case), number or member into a level."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid diagnostic level: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "WARNING":
                name = "WARN"
            if name in cls.__members__:
                return cls[name]
            if name.isdigit():
                return cls(int(name))
        raise ValueError(
            f"Invalid diagnostic level: {value!r}. "
            "Must be one of: error, warn, info, debug, trace"
        )


_STDLIB_LEVELS = {
    DiagnosticLevel.ERROR: logging.ERROR,
    DiagnosticLevel.WARN: logging.WARNING,
    DiagnosticLevel.INFO: logging.INFO,
    DiagnosticLevel.DEBUG: logging.DEBUG,
    DiagnosticLevel.TRACE: TRACE,
}


@dataclass(frozen=True, slots=True)
class DiagnosticEntry:
    """A single emitted diagnostic."""

    level: DiagnosticLevel
    stage: ProcessingStage
    message: str
    fields: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


@runtime_checkable
class DiagnosticSink(Protocol):
    """Destination for diagnostic entries."""

    def emit(self, entry: DiagnosticEntry) -> None: ...  # noqa: D102


class LoggingSink:
    """Forwards entries to a standard-library logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        """Initialize with an optional logger (defaults to ``tool_results``)."""
        self.logger = logger or logging.getLogger("tool_results")

    def emit(self, entry: DiagnosticEntry) -> None:  # noqa: D102
        std_level = _STDLIB_LEVELS[entry.level]
        if not self.logger.isEnabledFor(std_level):
            return
        if entry.fields:
            self.logger.log(
                std_level,
                "[%s] %s %s",
                entry.stage.value.upper(),
                entry.message,
                entry.fields,
                extra={"stage": entry.stage.value, "fields": entry.fields},
            )
        else:
            self.logger.log(
                std_level,
                "[%s] %s",
                entry.stage.value.upper(),
                entry.message,
                extra={"stage": entry.stage.value, "fields": {}},
            )


class MemorySink:
    """Keeps the most recent entries in memory.

    Useful in tests and for ad-hoc inspection from a REPL.
    """

    def __init__(self, max_entries: int = 1000) -> None:  # noqa: D107
        self.entries: deque[DiagnosticEntry] = deque(maxlen=max_entries)

    def emit(self, entry: DiagnosticEntry) -> None:  # noqa: D102
        self.entries.append(entry)

    def messages(
        self,
        level: DiagnosticLevel | None = None,
        stage: ProcessingStage | None = None,
    ) -> list[str]:
        """Return captured messages, optionally filtered by level and stage."""
        return [
            e.message
            for e in self.entries
            if (level is None or e.level == level)
            and (stage is None or e.stage == stage)
        ]

    def clear(self) -> None:  # noqa: D102
        self.entries.clear()


class DiagnosticLogger:
    """Threshold-filtered fan-out to one or more sinks.

    Entries whose level is above the configured threshold are dropped
    before any sink sees them. A sink that raises is reported and skipped;
    logging never interrupts the caller.
    """

    def __init__(
        self,
        level: DiagnosticLevel | str | int = DiagnosticLevel.DEBUG,
        sinks: tuple[DiagnosticSink, ...] | list[DiagnosticSink] | None = None,
    ) -> None:
        """Initialize the logger.

        Args:
            level: Most verbose level that is still emitted.
            sinks: Destinations for entries. Defaults to a single ``LoggingSink``.
        """
        self._level = DiagnosticLevel.parse(level)
        self.sinks: tuple[DiagnosticSink, ...] = (
            tuple(sinks) if sinks is not None else (LoggingSink(),)
        )

    @property
    def level(self) -> DiagnosticLevel:  # noqa: D102
        return self._level

    def set_level(self, level: DiagnosticLevel | str | int) -> None:
        """Change the verbosity threshold."""
        self._level = DiagnosticLevel.parse(level)

    def is_enabled_for(self, level: DiagnosticLevel) -> bool:  # noqa: D102
        return level <= self._level

    def log(
        self,
        level: DiagnosticLevel,
        stage: ProcessingStage,
        message: str,
        **fields: Any,
    ) -> None:
        """Emit a diagnostic entry if ``level`` passes the threshold."""
        if level > self._level:
            return
        entry = DiagnosticEntry(
            level=level, stage=stage, message=message, fields=dict(fields)
        )
        for sink in self.sinks:
            try:
                sink.emit(entry)
            except Exception as e:
                log.error(
                    "Diagnostic sink '%s' failed: %s",
                    type(sink).__name__,
                    e,
                    exc_info=True,
                )

    # Convenience wrappers

    def error(self, stage: ProcessingStage, message: str, **fields: Any) -> None:  # noqa: D102
        self.log(DiagnosticLevel.ERROR, stage, message, **fields)

    def warn(self, stage: ProcessingStage, message: str, **fields: Any) -> None:  # noqa: D102
        self.log(DiagnosticLevel.WARN, stage, message, **fields)

    def info(self, stage: ProcessingStage, message: str, **fields: Any) -> None:  # noqa: D102
        self.log(DiagnosticLevel.INFO, stage, message, **fields)

    def debug(self, stage: ProcessingStage, message: str, **fields: Any) -> None:  # noqa: D102
        self.log(DiagnosticLevel.DEBUG, stage, message, **fields)

    def trace(self, stage: ProcessingStage, message: str, **fields: Any) -> None:  # noqa: D102
        self.log(DiagnosticLevel.TRACE, stage, message, **fields)
