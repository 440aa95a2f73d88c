"""Command: uninstall then install, ignoring the uninstall outcome."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from binctl.commands._base import BinCommand, target_options

if TYPE_CHECKING:
    from binctl.commands._context import AppContext


@click.command(
    cls=BinCommand,
    examples="""\
  binctl reinstall
  binctl reinstall --source ./track
  binctl -v reinstall
  binctl --json reinstall""",
)
@target_options(with_source=True)
@click.pass_obj
def reinstall(
    app: AppContext,
    name: str | None,
    source: str | None,
    prefix: str | None,
    backend: str | None,
) -> None:
    """Uninstall, then install unconditionally.

    The exit code reflects the install phase only.  If it fails the
    artifact is left uninstalled; run ``binctl install`` to retry.
    """
    op = "reinstall"
    artifact = app.artifact(op, name=name, source=source)
    target = app.target(op, prefix=prefix)
    app.emit(app.lifecycle(op, backend=backend).reinstall(artifact, target))
