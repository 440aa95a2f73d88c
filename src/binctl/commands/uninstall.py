"""Command: remove the artifact from the prefix."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from binctl.commands._base import BinCommand, target_options

if TYPE_CHECKING:
    from binctl.commands._context import AppContext


@click.command(
    cls=BinCommand,
    examples="""\
  binctl uninstall
  binctl uninstall --prefix ~/.local
  binctl uninstall --strict
  binctl -q uninstall --name track""",
)
@target_options(with_source=False)
@click.option(
    "--strict/--missing-ok",
    "strict",
    default=None,
    help="Fail when the artifact is not installed (default: [uninstall] missing_ok).",
)
@click.pass_obj
def uninstall(
    app: AppContext,
    name: str | None,
    prefix: str | None,
    backend: str | None,
    strict: bool | None,
) -> None:
    """Uninstall the artifact from the prefix."""
    op = "uninstall"
    artifact = app.artifact(op, name=name, with_source=False)
    target = app.target(op, prefix=prefix)
    missing_ok = None if strict is None else not strict
    app.emit(app.lifecycle(op, backend=backend, missing_ok=missing_ok).uninstall(artifact, target))
