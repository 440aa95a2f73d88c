"""Artifact and installation target models.

Both are transient: built from CLI flags and config at invocation start,
discarded at exit.  Nothing about installed copies is cached here; the
toolchain is the only source of truth for what lives under a prefix.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, field_validator


class Artifact(BaseModel):
    """A named binary plus the location it is installed from.

    Attributes:
        name: Package name, unique within the toolchain namespace.
        source: Directory or package reference handed to the toolchain.
            Only install reads it; uninstall goes by name alone.
    """

    model_config = {"frozen": True}

    name: str
    source: str = "."

    @field_validator("name", "source")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "must not be empty"
            raise ValueError(msg)
        return value


class InstallTarget(BaseModel):
    """Filesystem prefix holding zero or one copy of each artifact name."""

    model_config = {"frozen": True}

    prefix: Path

    @property
    def bin_dir(self) -> Path:
        return self.prefix / "bin"
