"""Command-line runner.

Interpret one piece of raw tool output from a file or stdin and print the
processed result as JSON.

Examples:
- python -m tool_results --tool image_generator output.json
- echo '{"success": true, "message": "Done"}' | python -m tool_results --summary
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
from typing import TYPE_CHECKING

from tool_results.exceptions import ConfigurationError
from tool_results.pipeline.processor import create_processor

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_TOOL_NAME = "cli"


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    """Parse runner arguments."""
    parser = argparse.ArgumentParser(
        prog="python -m tool_results",
        description="Interpret raw tool output and print the processed result.",
    )
    parser.add_argument(
        "file",
        nargs="?",
        help="File holding the raw tool output (default: read stdin)",
    )
    parser.add_argument(
        "--tool",
        default=DEFAULT_TOOL_NAME,
        help=f"Tool name recorded on the result (default: {DEFAULT_TOOL_NAME})",
    )
    parser.add_argument(
        "--level",
        help="Diagnostic level: error, warn, info, debug or trace",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print only the AI context summary",
    )
    return parser.parse_args(list(argv))


def read_content(file: str | None) -> str:
    """Return the raw content from ``file`` or stdin."""
    if file is None or file == "-":
        return sys.stdin.read()
    return Path(file).read_text(encoding="utf-8")


def main(argv: Sequence[str] | None = None) -> int:
    """Run one pipeline pass. Returns 0 when the result succeeded, 1 otherwise."""
    ns = parse_args(sys.argv[1:] if argv is None else argv)

    overrides = {"diagnostic_level": ns.level} if ns.level else {}
    try:
        processor = create_processor(**overrides)
        content = read_content(ns.file)
    except (ConfigurationError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    result = processor.process_tool_result({"name": ns.tool, "content": content})
    if ns.summary:
        print(result.ai_context_summary)
    else:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
