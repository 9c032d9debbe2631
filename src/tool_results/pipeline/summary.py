"""Context summaries for re-injection into an AI conversation.

The summary is a small JSON object describing the outcome of a tool call.
It never embeds ``data`` values, so a multi-megabyte base64 image yields
the same few hundred characters as an empty result.
"""

from collections.abc import Mapping
import json
from typing import Any

from tool_results.core.types import ParsedToolPayload

MAX_TOOL_NAME_CHARS = 100
_ELLIPSIS = "..."


def identify_content_type(data: Any) -> str:
    """Classify ``data`` as image, chart, table, data or unknown."""
    if not isinstance(data, Mapping) or not data:
        return "unknown"
    if data.get("image_url"):
        return "image"
    if data.get("chart_data") is not None:
        return "chart"
    if data.get("table_data") is not None:
        return "table"
    return "data"


def _clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - len(_ELLIPSIS)] + _ELLIPSIS


class ContextSummarizer:
    """Produces bounded JSON digests of parsed payloads."""

    def __init__(self, max_message_chars: int = 200) -> None:  # noqa: D107
        self.max_message_chars = max_message_chars

    def summarize(self, payload: ParsedToolPayload, tool_name: str) -> str:
        """Summarize a parsed payload.

        Returns:
            JSON text with ``success``, ``tool``, ``message`` and a
            ``metadata`` object holding ``hasImage``, ``hasData`` and
            ``contentType``.
        """
        data = payload.data
        summary = {
            "success": payload.success,
            "tool": _clip(tool_name, MAX_TOOL_NAME_CHARS),
            "message": _clip(payload.message, self.max_message_chars),
            "metadata": {
                "hasImage": bool(data.get("image_url")),
                "hasData": bool(data),
                "contentType": identify_content_type(data),
            },
        }
        return json.dumps(summary, ensure_ascii=False)

    def summarize_error(self, tool_name: str, error: str) -> str:
        """Summarize a run that never produced a payload."""
        summary = {
            "success": False,
            "tool": _clip(tool_name, MAX_TOOL_NAME_CHARS),
            "error": _clip(error, self.max_message_chars),
        }
        return json.dumps(summary, ensure_ascii=False)
