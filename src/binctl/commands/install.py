"""Command: install the artifact into the prefix."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from binctl.commands._base import BinCommand, target_options

if TYPE_CHECKING:
    from binctl.commands._context import AppContext


@click.command(
    cls=BinCommand,
    examples="""\
  binctl install
  binctl install --prefix ~/.local
  binctl install --name track --source ./track
  binctl --json install""",
)
@target_options(with_source=True)
@click.pass_obj
def install(
    app: AppContext,
    name: str | None,
    source: str | None,
    prefix: str | None,
    backend: str | None,
) -> None:
    """Install the artifact, overwriting any existing copy."""
    op = "install"
    artifact = app.artifact(op, name=name, source=source)
    target = app.target(op, prefix=prefix)
    app.emit(app.lifecycle(op, backend=backend).install(artifact, target))
