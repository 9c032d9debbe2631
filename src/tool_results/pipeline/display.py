"""Display synthesis: turn a parsed payload into renderable components.

Failed payloads collapse to a single error component. Successful payloads
always get a success component, plus image, chart, table and text
components for the matching ``data`` keys. Embedded resources that fail
their shape check are still emitted with ``validation_passed=False`` so the
UI can show a placeholder instead of silently losing them.
"""

from __future__ import annotations

from collections.abc import Mapping
import re
from typing import Any
from urllib.parse import urlsplit

from tool_results.core.types import (
    DisplayComponent,
    DisplayType,
    ParsedToolPayload,
    ProcessingStage,
)
from tool_results.diagnostics import DiagnosticLogger

ERROR_PRIORITY = 1
IMAGE_PRIORITY = 1
CHART_PRIORITY = 1
TABLE_PRIORITY = 2
TEXT_PRIORITY = 2
SUCCESS_PRIORITY = 3

FAILED_MESSAGE = "Tool execution failed"
SUCCEEDED_MESSAGE = "Tool executed successfully"

_DATA_URI_RE = re.compile(
    r"^data:image/(?:jpeg|jpg|png|gif|webp|svg\+xml);base64,[A-Za-z0-9+/]+={0,2}$"
)
_URL_SCHEMES = frozenset({"http", "https"})


def validate_image_url(image_url: Any) -> bool:
    """Check the shape of an image reference.

    Data URIs must name a supported image type and carry base64 data.
    Other references must be absolute http(s) URLs with a host.
    """
    if not isinstance(image_url, str) or not image_url:
        return False
    if image_url.startswith("data:"):
        return _DATA_URI_RE.match(image_url) is not None
    try:
        parts = urlsplit(image_url)
        _ = parts.port  # malformed ports only surface on access
    except ValueError:
        return False
    if any(ch.isspace() for ch in image_url):
        return False
    return parts.scheme.lower() in _URL_SCHEMES and bool(parts.hostname)


def sort_by_priority(components: list[DisplayComponent]) -> list[DisplayComponent]:
    """Sort ascending by priority; ties keep insertion order."""
    return sorted(components, key=lambda c: c.priority)


class DisplaySynthesizer:
    """Builds the ordered display component list for a payload."""

    def __init__(self, logger: DiagnosticLogger | None = None) -> None:  # noqa: D107
        self.logger = logger or DiagnosticLogger()

    def synthesize(
        self, payload: ParsedToolPayload, tool_name: str
    ) -> list[DisplayComponent]:
        """Return the components for ``payload``, sorted by priority."""
        if not payload.success:
            return [
                DisplayComponent(
                    type=DisplayType.ERROR,
                    content=payload.message or FAILED_MESSAGE,
                    priority=ERROR_PRIORITY,
                    validation_passed=True,
                    metadata={"toolName": tool_name},
                )
            ]

        data = payload.data
        components = [
            DisplayComponent(
                type=DisplayType.SUCCESS,
                content=payload.message or SUCCEEDED_MESSAGE,
                priority=SUCCESS_PRIORITY,
                validation_passed=True,
                metadata={"toolName": tool_name},
            )
        ]

        if data.get("image_url"):
            components.append(self._image_component(payload))
        if data.get("chart_data") is not None:
            chart = data["chart_data"]
            components.append(
                DisplayComponent(
                    type=DisplayType.CHART,
                    content=chart,
                    priority=CHART_PRIORITY,
                    validation_passed=isinstance(chart, Mapping | list | tuple),
                    metadata={
                        "title": data.get("title"),
                        "chart_type": data.get("chart_type"),
                    },
                )
            )
        if data.get("table_data") is not None:
            table = data["table_data"]
            components.append(
                DisplayComponent(
                    type=DisplayType.TABLE,
                    content=table,
                    priority=TABLE_PRIORITY,
                    validation_passed=isinstance(table, list | tuple | Mapping),
                    metadata={"title": data.get("title"), "headers": data.get("headers")},
                )
            )
        if data.get("text") is not None:
            text = data["text"]
            components.append(
                DisplayComponent(
                    type=DisplayType.TEXT,
                    content=text,
                    priority=TEXT_PRIORITY,
                    validation_passed=isinstance(text, str),
                )
            )

        for component in components:
            if not component.validation_passed:
                self.logger.warn(
                    ProcessingStage.DISPLAY_PREP,
                    f"{component.type.value} component failed validation",
                    tool_name=tool_name,
                )
        return sort_by_priority(components)

    def _image_component(self, payload: ParsedToolPayload) -> DisplayComponent:
        data = payload.data
        image_url = data["image_url"]
        valid = validate_image_url(image_url)
        if not valid:
            preview = image_url[:100] if isinstance(image_url, str) else repr(image_url)
            self.logger.debug(
                ProcessingStage.DISPLAY_PREP,
                "Image reference failed shape check",
                image_url_preview=preview,
            )
        return DisplayComponent(
            type=DisplayType.IMAGE,
            content=image_url,
            priority=IMAGE_PRIORITY,
            validation_passed=valid,
            metadata={
                "caption": data.get("caption") or payload.message,
                "style": data.get("style") or "default",
                "size": data.get("size") or "standard",
                "prompt": data.get("prompt"),
            },
        )
