"""Built-in plugin contributing the Cargo toolchain backend."""

from __future__ import annotations

import pluggy

from binctl.infrastructure.cargo import CargoToolchain
from binctl.infrastructure.toolchain import Toolchain

hookimpl = pluggy.HookimplMarker("binctl")


class CargoPlugin:
    """Registers :class:`CargoToolchain` under the ``cargo`` backend name."""

    @hookimpl
    def register_toolchains(self) -> dict[str, type[Toolchain]]:
        return {CargoToolchain.name: CargoToolchain}
