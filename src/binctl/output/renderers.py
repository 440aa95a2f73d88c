"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to the install/uninstall field block.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.text import Text

from binctl.output.console import create_console, get_output, style_for_phase, style_for_state

if TYPE_CHECKING:
    from rich.console import Console

    from binctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_lifecycle)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="bin.ok")
    op = Text(f"  {result.op}", style="bin.op")
    console.print(label, op, sep="")


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="bin.key")
    if key == "name":
        v = Text(str(value), style="bin.name")
    elif key in ("prefix", "source"):
        v = Text(str(value), style="bin.path")
    elif key == "state":
        v = Text(str(value), style=style_for_state(str(value)))
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _render_phases(console: Console, phases: dict[str, Any]) -> None:
    """Print one line per saga phase, in execution order."""
    console.print(Text("  phases:", style="bin.key"))
    for phase in ("uninstall", "install"):
        outcome = phases.get(phase)
        if not outcome:
            continue
        status = str(outcome.get("status", ""))
        line = Text(f"    {phase}: ")
        line.append(status, style=style_for_phase(status))
        if outcome.get("message"):
            line.append(f" ({outcome['message']})", style="dim")
        console.print(line)


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print ``result.meta`` (verbose only), expanding the span tree."""
    meta = dict(result.meta or {})
    if not meta:
        return
    tree = meta.pop("telemetry", None)
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in meta.items():
        console.print(Text(f"    {key}: {value}"))
    if tree:
        _render_span(console, tree, depth=1)


def _timing_style(duration_ms: float) -> str:
    if duration_ms >= 10_000:
        return "bold red"
    if duration_ms >= 1_000:
        return "yellow"
    return "dim"


def _render_span(console: Console, span: dict[str, Any], depth: int) -> None:
    """One line per span, children indented under their parent."""
    duration = float(span.get("duration_ms", 0.0))
    line = Text("    " * depth)
    line.append(f"{duration:>10.2f}ms", style=_timing_style(duration))
    line.append(f"  {span.get('name', '?')}")
    notes = span.get("annotations") or {}
    if notes:
        line.append("  (" + ", ".join(f"{k}={v}" for k, v in notes.items()) + ")", style="dim")
    console.print(line)
    for child in span.get("children", []):
        _render_span(console, child, depth + 1)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="bin.error")
    op = Text(f"  {result.op}", style="bin.op")
    console.print(label, op, Text(": "), Text(msg), sep="")

    if "phases" in result.data:
        _render_phases(console, result.data["phases"])
        if result.data.get("state") == "absent":
            name = result.data.get("name", "artifact")
            console.print(Text(f"  {name} is not installed; run install to retry"))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))
    if verbose:
        _render_meta(console, result)


# ── Lifecycle renderers ───────────────────────────────────────────────


def _render_lifecycle(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render install/uninstall results as a single confirmation block."""
    _status_line(console, result)
    for key in ("name", "source", "prefix", "state", "removed"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_reinstall(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render reinstall results with per-phase outcomes."""
    _status_line(console, result)
    for key in ("name", "source", "prefix", "state"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose and "phases" in result.data:
        _render_phases(console, result.data["phases"])
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "install": _render_lifecycle,
    "uninstall": _render_lifecycle,
    "reinstall": _render_reinstall,
}
