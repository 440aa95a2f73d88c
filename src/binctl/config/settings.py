"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``BINCTL_*`` prefix
  3. TOML file: ``binctl.toml`` discovered via walk-up
  4. Code defaults: baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the ``find_config`` walk-up discovery from
:mod:`binctl.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from binctl.config.discovery import find_config
from binctl.config.models import (
    ArtifactConfig,
    PluginsConfig,
    TargetConfig,
    ToolchainConfig,
    UninstallConfig,
)


def _read_toml(path: Path | None) -> dict[str, Any]:
    """Parse *path*, or return ``{}`` when there is no config file."""
    if path is None or not path.is_file():
        return {}
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        import click

        raise click.ClickException(f"Invalid TOML in {path}: {exc}") from exc


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by one ``binctl.toml`` file.

    Top-level tables map onto the section models of :class:`BinSettings`.
    """

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data = _read_toml(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if k in self.settings_cls.model_fields}


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class BinSettings(BaseSettings):
    """Unified settings for the binctl CLI.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.  Stored on the
    :class:`~binctl.commands._context.AppContext` at the CLI root level.

    Attributes:
        project_root: Directory relative sources resolve against (parent of
            ``binctl.toml``, or CWD if no config found).
        config_path: The TOML file in effect, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "BINCTL_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved path (derived from config location, not read from TOML) ---
    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    artifact: ArtifactConfig = Field(default_factory=ArtifactConfig)
    target: TargetConfig = Field(default_factory=TargetConfig)
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    uninstall: UninstallConfig = Field(default_factory=UninstallConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> BinSettings:
        """Construct settings from CLI invocation.

        Discovers ``binctl.toml`` via walk-up (or explicit *config_path*),
        resolves *project_root* from the config file's parent directory,
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                project_root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None

    def resolve_source(self, source: str, *, base: Path | None = None) -> str:
        """Resolve a relative source directory against *base*.

        *base* defaults to the project root, which is right for the
        configured ``[artifact] source``; a ``--source`` typed on the
        command line is resolved against the current directory instead.
        Anything that is not an existing relative directory (absolute
        paths, registry package references) passes through unchanged.
        """
        if not source.strip():
            return source
        path = Path(source)
        if path.is_absolute():
            return source
        candidate = (base if base is not None else self.project_root) / path
        if candidate.is_dir():
            return str(candidate.resolve())
        return source
