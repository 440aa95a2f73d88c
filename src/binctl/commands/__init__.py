"""Subcommand modules for binctl.

Provides register_commands() which uses deferred imports to keep
``binctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the three lifecycle commands on the root CLI group."""
    from binctl.commands.install import install
    from binctl.commands.reinstall import reinstall
    from binctl.commands.uninstall import uninstall

    cli.add_command(install)
    cli.add_command(uninstall)
    cli.add_command(reinstall)
