"""Toolchain interface and error taxonomy.

A toolchain installs an artifact into a prefix and removes it again.
Both calls return None on success and raise a :class:`ToolchainError`
subclass on failure.  "Already installed" is never an error: install
must overwrite.
"""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

import structlog

if TYPE_CHECKING:
    from binctl.config.models import ToolchainConfig
    from binctl.domain.artifact import Artifact, InstallTarget

# Conventional shell exit status for "command not found".
EXIT_NOT_FOUND = 127


class ToolchainError(Exception):
    """Base class for toolchain failures, passed through to the caller uninterpreted."""

    def __init__(self, message: str, *, exit_code: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.stderr = stderr


class ToolchainInvocationFailed(ToolchainError):
    """The toolchain process could not be started or exited non-zero."""


class ToolchainUnavailable(ToolchainInvocationFailed):
    """The toolchain executable could not be launched at all."""


class ArtifactNotInstalled(ToolchainError):
    """Uninstall targeted a name that is not present under the prefix."""


class Toolchain(ABC):
    """Abstract install/uninstall backend.

    Subclasses set :attr:`name` (the ``[toolchain] backend`` key that selects
    them) and implement :meth:`install` / :meth:`uninstall`.
    """

    name: ClassVar[str] = ""

    def __init__(self, config: ToolchainConfig) -> None:
        self._config = config

    @abstractmethod
    def install(self, artifact: Artifact, target: InstallTarget) -> None:
        """Install *artifact* under *target*, overwriting any existing copy."""

    @abstractmethod
    def uninstall(self, artifact: Artifact, target: InstallTarget) -> None:
        """Remove *artifact* from *target*.

        Raises :class:`ArtifactNotInstalled` if nothing by that name is there.
        """


class SubprocessToolchain(Toolchain):
    """Toolchain that shells out to an executable and waits for it.

    Subclasses set :attr:`default_executable`; ``[toolchain] executable``
    overrides it.
    """

    default_executable: ClassVar[str] = ""

    @property
    def executable(self) -> str:
        return self._config.executable or self.default_executable

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Run the executable with *args*. Raises ToolchainUnavailable if it cannot start."""
        argv = [self.executable, *args]
        log = structlog.get_logger("binctl.toolchain")
        log.debug("toolchain.run", backend=self.name, argv=argv)
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            msg = f"Could not run {self.executable}: {exc}"
            raise ToolchainUnavailable(msg, exit_code=EXIT_NOT_FOUND) from exc
        log.debug("toolchain.exit", backend=self.name, returncode=proc.returncode)
        return proc

    @staticmethod
    def _failure_message(proc: subprocess.CompletedProcess[Any], fallback: str) -> str:
        """Pick the most useful line to show from a failed process."""
        text = (proc.stderr or proc.stdout or "").strip()
        if not text:
            return f"{fallback} (exit code {proc.returncode})"
        lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
        errors = [ln for ln in lines if ln.lower().startswith("error")]
        return errors[-1] if errors else lines[-1]
