"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, binctl.toml only contains overrides.
A project usually needs only ``[artifact] name``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- binctl.toml sections ---


class ArtifactConfig(BaseModel):
    """[artifact] section."""

    model_config = {"frozen": True}

    name: str = "track"
    source: str = "."


class TargetConfig(BaseModel):
    """[target] section."""

    model_config = {"frozen": True}

    prefix: str = "/usr/local"


class ToolchainConfig(BaseModel):
    """[toolchain] section.

    ``executable`` overrides the backend's default program name.
    """

    model_config = {"frozen": True}

    backend: str = "cargo"
    executable: str | None = None
    force: bool = True
    install_args: list[str] = Field(default_factory=list)
    uninstall_args: list[str] = Field(default_factory=list)


class UninstallConfig(BaseModel):
    """[uninstall] section.

    ``missing_ok`` decides what uninstalling an absent artifact means:
    a no-op success with a warning (default) or a NOT_INSTALLED failure.
    """

    model_config = {"frozen": True}

    missing_ok: bool = True


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    local_dir: str = ".binctl/plugins"
