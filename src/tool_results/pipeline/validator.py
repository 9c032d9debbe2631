"""Input validation for tool invocation records.

Runs before any parsing. The record may arrive as a ``ToolInvocationRecord``,
a plain mapping with ``name``/``content`` keys, any object exposing those
attributes, or ``None``.
"""

from collections.abc import Mapping
from typing import Any

from tool_results.core.types import ValidationResult

_MISSING = object()


def read_field(record: Any, name: str) -> Any:
    """Read ``name`` from a mapping or attribute-style record."""
    if isinstance(record, Mapping):
        return record.get(name, _MISSING)
    return getattr(record, name, _MISSING)


def validate_record(record: Any) -> list[ValidationResult]:
    """Check that the record exists and carries a usable name and content.

    Checks run in order: record, name, content. A missing record yields a
    single result since the remaining fields cannot be inspected.
    """
    if record is None:
        return [ValidationResult("toolResult", False, "Tool result is missing")]

    results = [ValidationResult("toolResult", True, "Tool result exists")]

    name = read_field(record, "name")
    name_ok = isinstance(name, str) and len(name) > 0
    results.append(
        ValidationResult(
            "name",
            name_ok,
            "Tool name valid" if name_ok else "Tool name missing or invalid",
        )
    )

    content = read_field(record, "content")
    content_ok = isinstance(content, str) and len(content.strip()) > 0
    results.append(
        ValidationResult(
            "content",
            content_ok,
            "Content valid" if content_ok else "Content missing, empty, or invalid",
        )
    )
    return results


def failed_messages(results: list[ValidationResult]) -> list[str]:
    """Messages of the checks that did not pass, in check order."""
    return [r.message for r in results if not r.valid]
