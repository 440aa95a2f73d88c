"""Pluggy hook specifications for binctl.

One setup-time hook lets plugins contribute toolchain backends.
Three lifecycle hooks fire synchronously after a successful operation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from binctl.infrastructure.toolchain import Toolchain

hookspec = pluggy.HookspecMarker("binctl")


class BinctlHookSpec:
    """Hook specifications for the binctl plugin system."""

    @hookspec
    def register_toolchains(self) -> dict[str, type[Toolchain]] | None:
        """Return backend name -> Toolchain subclass mappings."""

    @hookspec
    def post_install(self, name: str, prefix: str) -> None:
        """Called after an artifact is installed."""

    @hookspec
    def post_uninstall(self, name: str, prefix: str, removed: bool) -> None:
        """Called after uninstall. *removed* is False when nothing was there."""

    @hookspec
    def post_reinstall(self, name: str, prefix: str, phases: dict[str, Any]) -> None:
        """Called after a reinstall whose install phase succeeded."""
