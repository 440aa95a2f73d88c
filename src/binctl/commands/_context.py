"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Builds the artifact, target, and lifecycle service
from settings plus per-command overrides, and centralizes result emission
(stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import click
from pydantic import ValidationError

from binctl.output.formatters import OutputSettings, format_result
from binctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from binctl.config.settings import BinSettings
    from binctl.domain.artifact import Artifact, InstallTarget
    from binctl.plugins.manager import PluginManager
    from binctl.services.lifecycle import LifecycleService


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  Plugins are discovered
    lazily on first use so ``--help`` and ``--version`` never import
    third-party plugin code.
    """

    def __init__(self, settings: BinSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None

        from binctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from binctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def plugins(self) -> PluginManager:
        """The plugin manager (created and loaded on first access)."""
        if self._plugins is None:
            from binctl.plugins.builtins.cargo import CargoPlugin
            from binctl.plugins.manager import PluginManager

            pm = PluginManager()
            pm.register_plugin(CargoPlugin(), name="cargo")
            local_dir = Path(self.settings.plugins.local_dir)
            if not local_dir.is_absolute():
                local_dir = self.settings.project_root / local_dir
            pm.discover_and_load(local_dir=local_dir)
            self._plugins = pm
        return self._plugins

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def artifact(
        self,
        op: str,
        *,
        name: str | None = None,
        source: str | None = None,
        with_source: bool = True,
    ) -> Artifact:
        """Build the Artifact from overrides and ``[artifact]`` config.

        A ``--source`` override is relative to the current directory; the
        configured source is relative to the project root.  With
        ``with_source=False`` (uninstall) the source is neither read nor
        validated.  Emits an ``INVALID_ARTIFACT`` failure (and exits) on
        blank values.
        """
        from binctl.domain.artifact import Artifact

        cfg = self.settings.artifact
        fields: dict[str, str] = {"name": name if name is not None else cfg.name}
        if with_source:
            if source is not None:
                fields["source"] = self.settings.resolve_source(source, base=Path.cwd())
            else:
                fields["source"] = self.settings.resolve_source(cfg.source)
        try:
            return Artifact(**fields)
        except ValidationError as exc:
            bad = ", ".join(str(e["loc"][0]) for e in exc.errors() if e.get("loc"))
            self.fail(op, "INVALID_ARTIFACT", f"Invalid artifact {bad}: must not be empty")

    def target(self, op: str, *, prefix: str | None = None) -> InstallTarget:
        """Build the InstallTarget from an override or ``[target] prefix``."""
        from binctl.domain.artifact import InstallTarget

        raw = prefix if prefix is not None else self.settings.target.prefix
        if not raw.strip():
            self.fail(op, "INVALID_TARGET", "Installation prefix must not be empty")
        return InstallTarget(prefix=Path(raw).expanduser())

    def lifecycle(
        self,
        op: str,
        *,
        backend: str | None = None,
        missing_ok: bool | None = None,
    ) -> LifecycleService:
        """Resolve the toolchain backend and wrap it in a LifecycleService."""
        from binctl.services.lifecycle import LifecycleService

        config = self.settings.toolchain
        if backend is not None:
            config = config.model_copy(update={"backend": backend})

        available = self.plugins.toolchains()
        toolchain_cls = available.get(config.backend)
        if toolchain_cls is None:
            self.fail(
                op,
                "UNKNOWN_TOOLCHAIN",
                f"Unknown toolchain backend: {config.backend}",
                available=sorted(available),
            )

        if missing_ok is None:
            missing_ok = self.settings.uninstall.missing_ok
        return LifecycleService(toolchain_cls(config), self.plugins, missing_ok=missing_ok)

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with ``result.exit_code``.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        # In JSON mode, warnings are already in the serialized payload.
        click.echo(output, err=not result.ok)
        if not settings.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
        if not result.ok:
            raise SystemExit(result.exit_code)

    def fail(self, op: str, code: str, message: str, **detail: object) -> NoReturn:
        """Emit a failure that happened before any toolchain call."""
        result = ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=message, detail=detail),
        )
        self.emit(result)
        raise SystemExit(result.exit_code)
