"""Plugin loading and toolchain backend resolution.

Plugins come from three places, in registration order:

1. The built-in Cargo plugin, registered by the CLI before discovery.
2. Installed distributions exposing the ``binctl.plugins`` entry-point group.
3. Single-file plugins in the project's local plugin directory
   (``.binctl/plugins/`` by default).

A plugin that fails to load is logged and skipped; it never stops binctl.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING

import pluggy

from binctl.plugins.hookspecs import BinctlHookSpec

if TYPE_CHECKING:
    from binctl.infrastructure.toolchain import Toolchain

PROJECT_NAME = "binctl"
ENTRY_POINT_GROUP = "binctl.plugins"
LOCAL_MODULE_PREFIX = "binctl_local_plugin_"

logger = logging.getLogger(__name__)


class PluginManager:
    """Thin wrapper over :class:`pluggy.PluginManager` with binctl's hook specs."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(BinctlHookSpec)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register *plugin* under *name* (default: its class name).

        A name that is already taken is left alone.
        """
        name = name or type(plugin).__name__
        if self._pm.has_plugin(name):
            logger.debug("Plugin %s already registered, skipping", name)
            return
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin %s", name)

    def list_plugin_names(self) -> list[str]:
        """Registered plugin names in registration order."""
        return [name for name, _plugin in self._pm.list_name_plugin()]

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins, then any single-file plugins in *local_dir*.

        Returns the names of every registered plugin afterwards.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_class_plugins()
        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("*.py")):
                if not path.name.startswith("_"):
                    self._load_local_file(path)
        return self.list_plugin_names()

    def toolchains(self) -> dict[str, type[Toolchain]]:
        """Merge every plugin's ``register_toolchains`` answer into one registry.

        Plugins are visited in registration order.  Earlier ones win on
        name clashes; a clash is logged and the later entry dropped, as is
        anything that is not a Toolchain subclass.
        """
        from binctl.infrastructure.toolchain import Toolchain

        registry: dict[str, type[Toolchain]] = {}
        for plugin_name, plugin in self._pm.list_name_plugin():
            contribute = getattr(plugin, "register_toolchains", None)
            if contribute is None:
                continue
            try:
                offered = contribute()
            except Exception:
                logger.warning(
                    "Plugin %s failed in register_toolchains", plugin_name, exc_info=True
                )
                continue
            if offered is None:
                continue
            if not isinstance(offered, dict):
                logger.warning("Plugin %s returned non-dict toolchain registrations", plugin_name)
                continue
            for backend, cls in offered.items():
                if not (inspect.isclass(cls) and issubclass(cls, Toolchain)):
                    logger.warning(
                        "Ignoring toolchain %r from %s: not a Toolchain subclass",
                        backend,
                        plugin_name,
                    )
                elif backend in registry:
                    logger.warning(
                        "Ignoring toolchain %r from %s: name already registered",
                        backend,
                        plugin_name,
                    )
                else:
                    registry[backend] = cls
        return registry

    # ------------------------------------------------------------------
    # Loading helpers
    # ------------------------------------------------------------------

    def _load_local_file(self, path: Path) -> None:
        """Import *path* and register each hook-carrying class defined in it."""
        module_name = f"{LOCAL_MODULE_PREFIX}{path.stem}"
        module = _import_file(module_name, path)
        if module is None:
            return
        for _attr, cls in inspect.getmembers(module, inspect.isclass):
            if cls.__module__ != module_name or not _has_hookimpls(cls):
                continue
            try:
                plugin = cls()
            except Exception:
                logger.warning(
                    "Could not instantiate %s from %s", cls.__name__, path, exc_info=True
                )
                continue
            self.register_plugin(plugin, name=f"{module_name}.{cls.__name__}")

    def _instantiate_class_plugins(self) -> None:
        """Swap entry points that registered a bare class for an instance of it.

        pluggy calls hooks on whatever object was registered; a class would
        leave ``self`` unbound.
        """
        for name, plugin in list(self._pm.list_name_plugin()):
            if plugin is None or not inspect.isclass(plugin) or not _has_hookimpls(plugin):
                continue
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Could not instantiate entry-point plugin %s", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)


def _import_file(module_name: str, path: Path) -> ModuleType | None:
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("Cannot import local plugin %s", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Failed to load local plugin %s", path, exc_info=True)
        return None
    return module


def _has_hookimpls(cls: type) -> bool:
    """Whether any public attribute of *cls* carries a ``binctl`` hookimpl marker."""
    marker = f"{PROJECT_NAME}_impl"
    return any(
        getattr(getattr(cls, attr, None), marker, None)
        for attr in dir(cls)
        if not attr.startswith("_")
    )
