"""LifecycleService: install, uninstall, and reinstall one artifact.

Every call delegates straight to the toolchain; nothing about what is
installed is cached between calls.

Reinstall is a two-phase saga with no compensating action:
UNINSTALL (outcome recorded, never fatal) → INSTALL (decides the result).
If the install phase fails the prefix is left empty and the caller has to
run ``install`` again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from binctl.domain.lifecycle import Operation, PhaseOutcome, PhaseStatus, next_state
from binctl.infrastructure.toolchain import (
    ArtifactNotInstalled,
    ToolchainError,
    ToolchainUnavailable,
)
from binctl.services.base import BaseService
from binctl.services.result import ServiceError, ServiceResult
from binctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from binctl.domain.artifact import Artifact, InstallTarget
    from binctl.infrastructure.toolchain import Toolchain
    from binctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


def _error_code(exc: ToolchainError) -> str:
    if isinstance(exc, ToolchainUnavailable):
        return "TOOLCHAIN_UNAVAILABLE"
    if isinstance(exc, ArtifactNotInstalled):
        return "NOT_INSTALLED"
    return "TOOLCHAIN_FAILED"


class LifecycleService(BaseService):
    """Drives the absent/installed state machine through a toolchain.

    Args:
        toolchain: Backend that performs the actual install/uninstall.
        plugins: Loaded plugin manager for post-operation hooks.
        missing_ok: Uninstall policy for an artifact that is not installed.
            True reports a no-op success with a warning; False fails with
            ``NOT_INSTALLED``.
    """

    def __init__(
        self,
        toolchain: Toolchain,
        plugins: PluginManager | None = None,
        *,
        missing_ok: bool = True,
    ) -> None:
        super().__init__(toolchain, plugins)
        self._missing_ok = missing_ok

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @traced
    def install(self, artifact: Artifact, target: InstallTarget) -> ServiceResult:
        """Install *artifact* under *target*, overwriting any existing copy."""
        op = str(Operation.INSTALL)
        warnings: list[str] = []

        _, exc = self._run_phase("install", self._toolchain.install, artifact, target)
        if exc is not None:
            return self._failure(op, artifact, target, exc)

        data = {
            "name": artifact.name,
            "source": artifact.source,
            "prefix": str(target.prefix),
            "state": next_state(op, ok=True),
        }
        self._dispatch_event(
            "post_install",
            {"name": artifact.name, "prefix": str(target.prefix)},
            warnings,
        )
        logger.debug("Installed %s into %s", artifact.name, target.prefix)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def uninstall(self, artifact: Artifact, target: InstallTarget) -> ServiceResult:
        """Remove *artifact* from *target*, applying the missing-artifact policy."""
        op = str(Operation.UNINSTALL)
        warnings: list[str] = []

        outcome, exc = self._run_phase("uninstall", self._toolchain.uninstall, artifact, target)
        if exc is not None:
            if not (isinstance(exc, ArtifactNotInstalled) and self._missing_ok):
                return self._failure(op, artifact, target, exc)
            warnings.append(f"{artifact.name} is not installed under {target.prefix}")

        removed = outcome.status == PhaseStatus.OK
        data = {
            "name": artifact.name,
            "prefix": str(target.prefix),
            "state": next_state(op, ok=True),
            "removed": removed,
        }
        self._dispatch_event(
            "post_uninstall",
            {"name": artifact.name, "prefix": str(target.prefix), "removed": removed},
            warnings,
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def reinstall(self, artifact: Artifact, target: InstallTarget) -> ServiceResult:
        """Uninstall, then install unconditionally.

        Only the install phase decides ``ok``.  An absent artifact in the
        uninstall phase is expected and stays silent; any other uninstall
        failure becomes a warning.  Both outcomes are returned under
        ``data["phases"]`` whether or not the install succeeded.
        """
        op = str(Operation.REINSTALL)
        warnings: list[str] = []

        removal, _ = self._run_phase(
            "uninstall", self._toolchain.uninstall, artifact, target
        )
        if not removal.ok:
            warnings.append(f"uninstall phase failed, continuing with install: {removal.message}")
            logger.warning(
                "Uninstall phase of reinstall failed for %s: %s",
                artifact.name,
                removal.message,
            )

        placement, placement_exc = self._run_phase(
            "install", self._toolchain.install, artifact, target
        )
        phases = {
            "uninstall": removal.model_dump(mode="json"),
            "install": placement.model_dump(mode="json"),
        }
        data: dict[str, Any] = {
            "name": artifact.name,
            "source": artifact.source,
            "prefix": str(target.prefix),
            "state": next_state(op, ok=placement_exc is None),
            "phases": phases,
        }

        if placement_exc is not None:
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                warnings=warnings,
                error=self._error(placement_exc, phase="install"),
            )

        self._dispatch_event(
            "post_reinstall",
            {"name": artifact.name, "prefix": str(target.prefix), "phases": phases},
            warnings,
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run_phase(
        self,
        phase: str,
        call: Callable[[Artifact, InstallTarget], None],
        artifact: Artifact,
        target: InstallTarget,
    ) -> tuple[PhaseOutcome, ToolchainError | None]:
        """Run one toolchain call and tag its outcome. Never raises ToolchainError."""
        with trace_span(f"toolchain.{phase}") as span:
            try:
                call(artifact, target)
            except ArtifactNotInstalled as exc:
                outcome = PhaseOutcome(
                    phase=phase,
                    status=PhaseStatus.NOT_INSTALLED,
                    message=exc.message,
                    exit_code=exc.exit_code,
                )
                result: tuple[PhaseOutcome, ToolchainError | None] = (outcome, exc)
            except ToolchainError as exc:
                outcome = PhaseOutcome(
                    phase=phase,
                    status=PhaseStatus.FAILED,
                    message=exc.message,
                    exit_code=exc.exit_code,
                )
                result = (outcome, exc)
            else:
                result = (PhaseOutcome(phase=phase, status=PhaseStatus.OK, exit_code=0), None)
            if span:
                span.annotate("status", str(result[0].status))
        return result

    @staticmethod
    def _error(exc: ToolchainError, *, phase: str) -> ServiceError:
        detail: dict[str, Any] = {"phase": phase}
        if exc.exit_code is not None:
            detail["exit_code"] = exc.exit_code
        if exc.stderr:
            detail["stderr"] = exc.stderr.strip()
        return ServiceError(code=_error_code(exc), message=exc.message, detail=detail)

    def _failure(
        self,
        op: str,
        artifact: Artifact,
        target: InstallTarget,
        exc: ToolchainError,
    ) -> ServiceResult:
        return ServiceResult(
            ok=False,
            op=op,
            data={"name": artifact.name, "prefix": str(target.prefix)},
            error=self._error(exc, phase=op),
        )
