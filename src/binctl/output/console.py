"""Rich Console factory and theme for binctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

BIN_THEME = Theme(
    {
        "bin.ok": "bold green",
        "bin.error": "bold red",
        "bin.warning": "bold yellow",
        "bin.op": "bold cyan",
        "bin.key": "dim",
        "bin.name": "bold blue",
        "bin.path": "dim",
        "bin.state.installed": "green",
        "bin.state.absent": "yellow",
        "bin.phase.ok": "green",
        "bin.phase.not_installed": "dim",
        "bin.phase.failed": "red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=BIN_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_state(state: str) -> str:
    """Return the Rich style name for an install state."""
    return f"bin.state.{state}" if state in ("installed", "absent") else ""


def style_for_phase(status: str) -> str:
    """Return the Rich style name for a phase outcome status."""
    return f"bin.phase.{status}" if status in ("ok", "not_installed", "failed") else ""
