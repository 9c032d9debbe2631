"""
Global test configuration with support for different test types.
"""

from collections.abc import Callable
import logging
import os

import pytest

from tool_results.config import FrozenConfig
from tool_results.diagnostics import DiagnosticLevel, DiagnosticLogger, MemorySink
from tool_results.pipeline.processor import ToolResultProcessor


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_tool_results_env(request, monkeypatch):
    """Ensure a clean TOOL_RESULTS_* environment for each test.

    - Removes all TOOL_RESULTS_* variables and the DEBUG toggle before each test
    - Leaves other variables intact for stability

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.upper().startswith("TOOL_RESULTS_"):
            monkeypatch.delenv(key, raising=False)
    # Avoid DEBUG toggles switching telemetry on
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def neutral_project_config(request, monkeypatch, tmp_path):
    """Point the project config path at a file that does not exist.

    Prevents the repository's own pyproject.toml (or a parent's) from
    leaking into config resolution.

    Escape hatch: mark test with @pytest.mark.allow_real_project_config.
    """
    if request.node.get_closest_marker("allow_real_project_config"):
        return
    # Prefer environment override to avoid monkeypatching internals
    monkeypatch.setenv(
        "TOOL_RESULTS_PYPROJECT_PATH", str(tmp_path / "isolated" / "pyproject.toml")
    )


@pytest.fixture
def write_pyproject(monkeypatch, tmp_path) -> Callable[[str], None]:
    """Write a pyproject.toml and point config resolution at it.

    Usage:
        write_pyproject('[tool.tool_results]\\ndiagnostic_level = "info"\\n')
    """

    def _write(content: str) -> None:
        path = tmp_path / "project" / "pyproject.toml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        monkeypatch.setenv("TOOL_RESULTS_PYPROJECT_PATH", str(path))

    return _write


# --- Pipeline Fixtures ---
@pytest.fixture
def memory_sink() -> MemorySink:
    """Captures diagnostic entries instead of writing to logging."""
    return MemorySink()


@pytest.fixture
def diagnostic_logger(memory_sink) -> DiagnosticLogger:
    """Trace-level logger writing only to ``memory_sink``."""
    return DiagnosticLogger(DiagnosticLevel.TRACE, sinks=[memory_sink])


@pytest.fixture
def processor(diagnostic_logger) -> ToolResultProcessor:
    """Processor with default settings and captured diagnostics."""
    return ToolResultProcessor(FrozenConfig(), logger=diagnostic_logger)


@pytest.fixture
def process(processor) -> Callable:
    """Shorthand: ``process("tool", "content")``."""

    def _process(name, content):
        return processor.process_tool_result({"name": name, "content": content})

    return _process


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_library_logging():
    """Keep the library's default logging sink quiet during test runs."""
    logging.getLogger("tool_results").setLevel(logging.WARNING)


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Architectural invariants that must always hold",
        "characterization: Golden master tests to detect behavior changes.",
        "slow: Tests that take >1 second",
        "allow_env_pollution: Keep TOOL_RESULTS_* variables from the outer environment",
        "allow_real_project_config: Read the real pyproject.toml during config resolution",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)
