"""Exceptions for tool result interpretation"""  # noqa: D415


class ToolResultsError(Exception):
    """Base exception for tool result processing errors"""  # noqa: D415


class ValidationError(ToolResultsError):
    """Raised when an invocation record is missing or malformed"""  # noqa: D415


class ConfigurationError(ToolResultsError, ValueError):
    """Raised when configuration values cannot be resolved or validated"""  # noqa: D415


class RecoveryFailure(ToolResultsError):
    """Why a single recovery strategy declined the content.

    Carried inside ``Failure`` values; strategies return it rather than
    raising it.
    """

    def __init__(self, strategy: str, reason: str) -> None:
        """Initialize with the strategy name and a short reason."""
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"{strategy}: {reason}")
