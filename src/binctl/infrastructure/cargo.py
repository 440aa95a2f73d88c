"""Cargo backend: ``cargo install`` / ``cargo uninstall`` scoped by ``--root``."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from binctl.infrastructure.toolchain import (
    ArtifactNotInstalled,
    SubprocessToolchain,
    ToolchainInvocationFailed,
)

if TYPE_CHECKING:
    from binctl.domain.artifact import Artifact, InstallTarget

# Cargo's wording when uninstall finds nothing under the root.
_NOT_INSTALLED = re.compile(r"did not match any packages|is not installed", re.IGNORECASE)


class CargoToolchain(SubprocessToolchain):
    """Install Rust binaries with cargo into an explicit root prefix.

    ``--force`` is passed on install (unless disabled in config) so that
    re-running install over an existing copy replaces it instead of
    reporting "already installed".
    """

    name = "cargo"
    default_executable = "cargo"

    def install_args(self, artifact: Artifact, target: InstallTarget) -> list[str]:
        """``--path`` for a local crate directory, else a registry crate name."""
        args = ["install", "--root", str(target.prefix)]
        if Path(artifact.source).is_dir():
            args += ["--path", artifact.source]
        else:
            args.append(artifact.source)
        if self._config.force:
            args.append("--force")
        args.extend(self._config.install_args)
        return args

    def uninstall_args(self, artifact: Artifact, target: InstallTarget) -> list[str]:
        return [
            "uninstall",
            "--root",
            str(target.prefix),
            artifact.name,
            *self._config.uninstall_args,
        ]

    def install(self, artifact: Artifact, target: InstallTarget) -> None:
        proc = self._run(*self.install_args(artifact, target))
        if proc.returncode != 0:
            raise ToolchainInvocationFailed(
                self._failure_message(proc, "cargo install failed"),
                exit_code=proc.returncode,
                stderr=proc.stderr or "",
            )

    def uninstall(self, artifact: Artifact, target: InstallTarget) -> None:
        proc = self._run(*self.uninstall_args(artifact, target))
        if proc.returncode == 0:
            return
        stderr = proc.stderr or ""
        message = self._failure_message(proc, "cargo uninstall failed")
        if _NOT_INSTALLED.search(stderr):
            raise ArtifactNotInstalled(message, exit_code=proc.returncode, stderr=stderr)
        raise ToolchainInvocationFailed(message, exit_code=proc.returncode, stderr=stderr)
