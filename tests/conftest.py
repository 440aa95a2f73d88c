"""Shared pytest fixtures and test helpers for binctl tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from binctl.config.models import ToolchainConfig
from binctl.domain.artifact import Artifact, InstallTarget
from binctl.services.lifecycle import LifecycleService
from binctl.services.telemetry import _current_span, disable_telemetry
from tests.fakes import FakeToolchain

ARTIFACT_NAME = "track"

_LOCAL_PLUGIN = '''\
import pluggy

from tests.fakes import FakeToolchain

hookimpl = pluggy.HookimplMarker("binctl")


class FakeBackendPlugin:
    @hookimpl
    def register_toolchains(self):
        return {"fake": FakeToolchain}
'''


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_fake_toolchain() -> Generator[None, None, None]:
    FakeToolchain.reset()
    yield
    FakeToolchain.reset()


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Generator[None, None, None]:
    """CLI runs point the root handler at CliRunner's stderr, closed afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None, None, None]:
    """``--verbose`` switches telemetry on for the rest of the context."""
    yield
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's BINCTL_* environment out of the tests."""
    for key in list(os.environ):
        if key.startswith("BINCTL_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Build output directory holding a ``track`` binary."""
    src = tmp_path / "src"
    src.mkdir()
    write_build(src, b"track v1")
    return src


@pytest.fixture
def prefix(tmp_path: Path) -> Path:
    return tmp_path / "prefix"


@pytest.fixture
def artifact(source_dir: Path) -> Artifact:
    return Artifact(name=ARTIFACT_NAME, source=str(source_dir))


@pytest.fixture
def target(prefix: Path) -> InstallTarget:
    return InstallTarget(prefix=prefix)


@pytest.fixture
def toolchain() -> FakeToolchain:
    return FakeToolchain(ToolchainConfig(backend="fake"))


@pytest.fixture
def service(toolchain: FakeToolchain) -> LifecycleService:
    return LifecycleService(toolchain)


@pytest.fixture
def project(
    tmp_path: Path,
    source_dir: Path,
    prefix: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Path:
    """Project directory with a binctl.toml wired to the fake backend.

    The fake backend is contributed by a single-file plugin in
    ``.binctl/plugins/``, and CWD is moved into the project so the CLI
    discovers the config by walking up.
    """
    (tmp_path / "binctl.toml").write_text(
        f'[artifact]\nname = "{ARTIFACT_NAME}"\nsource = "src"\n'
        f'[target]\nprefix = "{prefix.as_posix()}"\n'
        '[toolchain]\nbackend = "fake"\n',
        encoding="utf-8",
    )
    plugin_dir = tmp_path / ".binctl" / "plugins"
    plugin_dir.mkdir(parents=True)
    (plugin_dir / "fake_backend.py").write_text(_LOCAL_PLUGIN, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_build(source: Path, content: bytes, name: str = ARTIFACT_NAME) -> None:
    """Simulate a fresh build of *name* in *source*."""
    (source / name).write_bytes(content)


def installed_copy(prefix: Path, name: str = ARTIFACT_NAME) -> Path:
    """Where the fake toolchain places *name* under *prefix*."""
    return prefix / "bin" / name
