"""Recovery parser: an ordered chain of strategies for raw tool output.

Tool output is usually JSON, but models and tools also return JSON with
unescaped characters, trailing commas, truncated tails or prose around the
interesting bits. The parser tries each strategy in turn and stops at the
first one that yields a payload:

1. ``strict_parse``: standard JSON parsing of the whole content.
2. ``image_recovery``: pull ``image_url`` (or a bare base64 data URI) plus
   ``success``/``message`` straight out of the text.
3. ``basic_recovery``: pull just ``success`` and ``message``, unless the
   content is an object the next strategy can repair whole.
4. ``syntactic_repair``: drop trailing commas, collapse whitespace, append
   missing closing braces, then parse again.

If every strategy declines, a fallback payload carrying a short preview of
the raw content is produced, so ``parse`` always returns.

Repair only ever appends closing braces. Content with more ``}`` than
``{`` is left as is and ends in the fallback.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import json
import re
from typing import Any

from tool_results.core.types import (
    Failure,
    ParsedToolPayload,
    PayloadKind,
    ProcessingStage,
    RecoveryAttempt,
    Result,
    Success,
)
from tool_results.diagnostics import DiagnosticLogger
from tool_results.exceptions import RecoveryFailure

from .base import RecoveryStrategy

DEFAULT_MESSAGE = "Tool executed"
IMAGE_MESSAGE = "Image generated successfully"
BASE64_IMAGE_MESSAGE = "Image generated (recovered from base64)"
BASIC_MESSAGE = "Tool execution completed"
FALLBACK_MESSAGE = "Tool execution completed but result format was corrupted"
FALLBACK_STRATEGY = "fallback"

# A JSON string body: any run of non-quote, non-backslash chars or escapes.
_STRING_BODY = r'((?:[^"\\]|\\.)+)'
_IMAGE_URL_RE = re.compile(r'"image_url"\s*:\s*"' + _STRING_BODY + '"')
_MESSAGE_RE = re.compile(r'"message"\s*:\s*"' + _STRING_BODY + '"')
_SUCCESS_RE = re.compile(r'"success"\s*:\s*(true|false)\b')
_DATA_URI_RE = re.compile(r"data:image/[A-Za-z0-9.+-]+;base64,[A-Za-z0-9+/]+={0,2}")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_WHITESPACE_RE = re.compile(r"\s+")


def _decode_json_string(raw: str) -> str:
    """Undo JSON escapes in a captured string body, keeping it raw if invalid."""
    if "\\" not in raw:
        return raw
    try:
        decoded = json.loads(f'"{raw}"')
    except ValueError:
        return raw
    return decoded if isinstance(decoded, str) else raw


def _find_success(content: str) -> bool | None:
    match = _SUCCESS_RE.search(content)
    if match is None:
        return None
    return match.group(1) == "true"


def _find_message(content: str) -> str | None:
    match = _MESSAGE_RE.search(content)
    if match is None:
        return None
    return _decode_json_string(match.group(1))


def _payload_from_object(
    parsed: Any, strategy: str
) -> Result[ParsedToolPayload, RecoveryFailure]:
    """Shape a decoded JSON value into a payload."""
    if not isinstance(parsed, dict):
        return Failure(
            RecoveryFailure(
                strategy, f"top-level value is {type(parsed).__name__}, not an object"
            )
        )

    success = parsed.get("success")
    message = parsed.get("message")
    data = parsed.get("data")
    if data is None:
        data = {}
    elif not isinstance(data, dict):
        data = {"value": data}

    return Success(
        ParsedToolPayload(
            success=success is True,
            message=message if isinstance(message, str) and message else DEFAULT_MESSAGE,
            data=data,
            kind=PayloadKind.STRUCTURED,
        )
    )


# --- Strategies ---


def strict_parse(content: str) -> Result[ParsedToolPayload, RecoveryFailure]:
    """Parse the whole content as a JSON object."""
    try:
        parsed = json.loads(content)
    except (ValueError, RecursionError) as e:
        return Failure(RecoveryFailure("strict_parse", f"invalid JSON: {e}"))
    return _payload_from_object(parsed, "strict_parse")


def recover_image_result(content: str) -> Result[ParsedToolPayload, RecoveryFailure]:
    """Extract an image result from JSON-shaped but broken content."""
    match = _IMAGE_URL_RE.search(content)
    if match is not None:
        success = _find_success(content)
        message = _find_message(content)
        return Success(
            ParsedToolPayload(
                success=True if success is None else success,
                message=message or IMAGE_MESSAGE,
                data={"image_url": _decode_json_string(match.group(1))},
                kind=PayloadKind.IMAGE,
            )
        )

    data_uri = _DATA_URI_RE.search(content)
    if data_uri is not None:
        return Success(
            ParsedToolPayload(
                success=True,
                message=BASE64_IMAGE_MESSAGE,
                data={"image_url": data_uri.group(0)},
                kind=PayloadKind.IMAGE,
            )
        )

    return Failure(RecoveryFailure("image_recovery", "no image_url field or data URI"))


def _is_repairable_object(content: str) -> bool:
    """True when ``repair_content`` turns the content into a JSON object."""
    if not content.lstrip().startswith("{"):
        return False
    try:
        return isinstance(json.loads(repair_content(content)), dict)
    except (ValueError, RecursionError):
        return False


def recover_basic_result(content: str) -> Result[ParsedToolPayload, RecoveryFailure]:
    """Extract the minimal ``success``/``message`` shape.

    A ``success`` boolean literal is required; without it there is no shape
    to recover. Objects that syntactic repair can parse whole are declined
    so their ``data`` survives.
    """
    success = _find_success(content)
    if success is None:
        return Failure(RecoveryFailure("basic_recovery", "no success literal"))
    if _is_repairable_object(content):
        return Failure(
            RecoveryFailure("basic_recovery", "object is repairable, deferring to repair")
        )
    return Success(
        ParsedToolPayload(
            success=success,
            message=_find_message(content) or BASIC_MESSAGE,
            data={},
            kind=PayloadKind.BASIC,
        )
    )


def repair_content(content: str) -> str:
    """Apply conservative textual repairs to near-JSON content."""
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", content)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    missing = cleaned.count("{") - cleaned.count("}")
    if missing > 0:
        cleaned += "}" * missing
    return cleaned


def repair_and_parse(content: str) -> Result[ParsedToolPayload, RecoveryFailure]:
    """Repair the content, then retry the strict parse."""
    cleaned = repair_content(content)
    if cleaned == content.strip():
        return Failure(RecoveryFailure("syntactic_repair", "no applicable repairs"))
    result = strict_parse(cleaned)
    if isinstance(result, Failure):
        return Failure(
            RecoveryFailure("syntactic_repair", f"still invalid: {result.error.reason}")
        )
    return result


def fallback_payload(content: str, preview_chars: int = 200) -> ParsedToolPayload:
    """Build the payload used when every strategy failed. Cannot fail."""
    return ParsedToolPayload(
        success=False,
        message=FALLBACK_MESSAGE,
        data={"raw_content": content[:preview_chars], "recovery_attempted": True},
        kind=PayloadKind.FALLBACK,
    )


def default_strategies() -> tuple[RecoveryStrategy, ...]:
    """The built-in strategy chain, in the order it is tried."""
    return (
        RecoveryStrategy("strict_parse", strict_parse),
        RecoveryStrategy("image_recovery", recover_image_result),
        RecoveryStrategy("basic_recovery", recover_basic_result),
        RecoveryStrategy("syntactic_repair", repair_and_parse),
    )


# --- Parser ---


@dataclass(frozen=True, slots=True)
class ParseOutcome:
    """Payload produced by the parser plus the trail of attempts."""

    payload: ParsedToolPayload
    strategy: str
    attempts: tuple[RecoveryAttempt, ...]

    @property
    def exhausted(self) -> bool:
        """True when no strategy succeeded and the fallback was used."""
        return self.strategy == FALLBACK_STRATEGY

    @property
    def warnings(self) -> tuple[str, ...]:
        """One message per strategy that declined the content."""
        return tuple(
            f"{a.strategy} failed: {a.error}" for a in self.attempts if not a.successful
        )


class RecoveryParser:
    """Runs the strategy chain; ``parse`` never raises.

    Attributes:
        strategies: Strategies in the order they are tried.
        raw_content_preview_chars: Raw characters kept by the fallback payload.
    """

    def __init__(
        self,
        strategies: Iterable[RecoveryStrategy] | None = None,
        *,
        raw_content_preview_chars: int = 200,
        log_preview_chars: int = 50,
        logger: DiagnosticLogger | None = None,
    ) -> None:
        """Initialize the parser.

        Args:
            strategies: Optional strategy chain. Defaults to ``default_strategies()``.
            raw_content_preview_chars: Raw characters kept by the fallback payload.
            log_preview_chars: Raw characters included in trace logs.
            logger: Diagnostic logger; a default one is created if omitted.
        """
        self.strategies: Sequence[RecoveryStrategy] = (
            tuple(strategies) if strategies is not None else default_strategies()
        )
        self.raw_content_preview_chars = raw_content_preview_chars
        self.log_preview_chars = log_preview_chars
        self.logger = logger or DiagnosticLogger()

    def parse(self, content: str) -> ParseOutcome:
        """Interpret ``content``, returning the first successful payload."""
        if not isinstance(content, str):
            content = str(content)

        self.logger.trace(
            ProcessingStage.PARSING,
            "Starting content parsing",
            content_length=len(content),
            content_preview=content[: self.log_preview_chars],
        )

        attempts: list[RecoveryAttempt] = []
        for strategy in self.strategies:
            result = self._run(strategy, content)
            if isinstance(result, Success):
                attempts.append(RecoveryAttempt(strategy.name, successful=True))
                self.logger.debug(
                    ProcessingStage.PARSING,
                    f"Strategy {strategy.name} succeeded",
                    attempts=len(attempts),
                    payload_kind=result.value.kind.value,
                )
                return ParseOutcome(result.value, strategy.name, tuple(attempts))

            attempts.append(
                RecoveryAttempt(strategy.name, successful=False, error=result.error.reason)
            )
            self.logger.debug(
                ProcessingStage.PARSING,
                f"Strategy {strategy.name} failed",
                error=result.error.reason,
            )

        payload = fallback_payload(content, self.raw_content_preview_chars)
        attempts.append(RecoveryAttempt(FALLBACK_STRATEGY, successful=True))
        self.logger.warn(
            ProcessingStage.PARSING,
            "All recovery strategies failed, using fallback",
            strategies_tried=len(attempts) - 1,
        )
        return ParseOutcome(payload, FALLBACK_STRATEGY, tuple(attempts))

    def _run(
        self, strategy: RecoveryStrategy, content: str
    ) -> Result[ParsedToolPayload, RecoveryFailure]:
        """Run one strategy, converting anything it raises into a Failure."""
        try:
            result = strategy.attempt(content)
        except Exception as e:
            return Failure(
                RecoveryFailure(strategy.name, f"unexpected {type(e).__name__}: {e}")
            )
        if isinstance(result, Success) and isinstance(result.value, ParsedToolPayload):
            return result
        if isinstance(result, Failure) and isinstance(result.error, RecoveryFailure):
            return result
        if isinstance(result, Failure):
            return Failure(RecoveryFailure(strategy.name, str(result.error)))
        return Failure(
            RecoveryFailure(strategy.name, f"returned {type(result).__name__}")
        )
