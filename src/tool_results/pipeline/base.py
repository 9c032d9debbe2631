"""Contract for recovery strategies used by the parser chain."""

from collections.abc import Callable
from dataclasses import dataclass

from tool_results.core.types import ParsedToolPayload, Result
from tool_results.exceptions import RecoveryFailure

type StrategyFn = Callable[[str], Result[ParsedToolPayload, RecoveryFailure]]


@dataclass(frozen=True, slots=True)
class RecoveryStrategy:
    """A named, independent attempt at interpreting raw content.

    ``attempt`` must be free of side effects and should report expected
    failures as ``Failure(RecoveryFailure)`` values. Anything it raises is
    treated as a failure of this strategy alone.
    """

    name: str
    attempt: StrategyFn

    def __post_init__(self) -> None:
        """Validate the strategy definition."""
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name: must be a non-empty str")
        if not callable(self.attempt):
            raise TypeError("attempt: must be callable")
