"""BaseService: foundation for binctl services.

Every service receives a :class:`Toolchain` at construction time and,
optionally, a loaded :class:`PluginManager` for post-operation hooks.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from binctl.infrastructure.toolchain import Toolchain
    from binctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class LifecycleService(BaseService):
            def install(self, artifact, target) -> ServiceResult:
                self._toolchain.install(artifact, target)
                ...
    """

    def __init__(self, toolchain: Toolchain, plugins: PluginManager | None = None) -> None:
        self._toolchain = toolchain
        self._plugins = plugins

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Call a lifecycle hook on every plugin. No-op without a plugin manager.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is None:
            return
        try:
            getattr(self._plugins.hook, hook_name)(**payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
