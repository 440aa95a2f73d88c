"""Custom Click base class with --examples support, plus shared options.

BinCommand accepts an ``examples`` parameter.  When ``--examples`` is
passed, the command prints usage examples and exits.  This keeps
``--help`` concise while making examples available on demand.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

_F = TypeVar("_F", bound=Callable[..., Any])


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class BinCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


def target_options(*, with_source: bool) -> Callable[[_F], _F]:
    """Attach the artifact/prefix/backend overrides shared by every command.

    Unset options fall back to ``binctl.toml`` / ``BINCTL_*`` values.
    """

    def decorator(func: _F) -> _F:
        func = click.option(
            "--toolchain",
            "backend",
            default=None,
            help="Toolchain backend (default: [toolchain] backend).",
        )(func)
        func = click.option(
            "--prefix",
            default=None,
            help="Installation prefix (default: [target] prefix).",
        )(func)
        if with_source:
            func = click.option(
                "--source",
                default=None,
                help="Directory or package reference to install from.",
            )(func)
        func = click.option(
            "--name",
            default=None,
            help="Artifact name (default: [artifact] name).",
        )(func)
        return func

    return decorator
