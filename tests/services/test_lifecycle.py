"""Tests for LifecycleService: install, uninstall, and the reinstall saga."""

from __future__ import annotations

from pathlib import Path

import pluggy
import pytest

from binctl.domain.artifact import Artifact, InstallTarget
from binctl.infrastructure.toolchain import (
    ArtifactNotInstalled,
    ToolchainInvocationFailed,
    ToolchainUnavailable,
)
from binctl.plugins.manager import PluginManager
from binctl.services.lifecycle import LifecycleService
from tests.conftest import installed_copy, write_build
from tests.fakes import FakeToolchain

hookimpl = pluggy.HookimplMarker("binctl")


def _permission_denied() -> ToolchainInvocationFailed:
    return ToolchainInvocationFailed(
        "error: failed to create directory `/usr/local/bin`: Permission denied (os error 13)",
        exit_code=101,
        stderr="error: failed to create directory `/usr/local/bin`\n",
    )


# ---------------------------------------------------------------------------
# install()
# ---------------------------------------------------------------------------


class TestInstall:
    def test_install_into_empty_prefix(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget, prefix: Path
    ) -> None:
        result = service.install(artifact, target)
        assert result.ok
        assert result.op == "install"
        assert result.data["state"] == "installed"
        assert result.data["name"] == "track"
        assert result.data["prefix"] == str(prefix)
        assert installed_copy(prefix).read_bytes() == b"track v1"

    def test_install_twice_is_idempotent(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget, prefix: Path
    ) -> None:
        first = service.install(artifact, target)
        snapshot = sorted(p.relative_to(prefix) for p in prefix.rglob("*"))

        second = service.install(artifact, target)

        assert first.ok and second.ok
        assert second.data == first.data
        assert sorted(p.relative_to(prefix) for p in prefix.rglob("*")) == snapshot
        assert installed_copy(prefix).read_bytes() == b"track v1"

    def test_install_overwrites_existing_copy(
        self,
        service: LifecycleService,
        artifact: Artifact,
        target: InstallTarget,
        prefix: Path,
        source_dir: Path,
    ) -> None:
        service.install(artifact, target)
        write_build(source_dir, b"track v2")

        result = service.install(artifact, target)

        assert result.ok
        assert installed_copy(prefix).read_bytes() == b"track v2"

    def test_toolchain_failure_propagates(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget
    ) -> None:
        FakeToolchain.install_error = _permission_denied()
        result = service.install(artifact, target)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "TOOLCHAIN_FAILED"
        assert "Permission denied" in result.error.message
        assert result.error.detail["exit_code"] == 101
        assert result.error.detail["phase"] == "install"
        assert result.exit_code == 101

    def test_missing_source_fails(
        self, service: LifecycleService, target: InstallTarget, tmp_path: Path
    ) -> None:
        artifact = Artifact(name="track", source=str(tmp_path / "nowhere"))
        result = service.install(artifact, target)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "TOOLCHAIN_FAILED"

    def test_unavailable_toolchain_has_own_code(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget
    ) -> None:
        FakeToolchain.install_error = ToolchainUnavailable("Could not run cargo", exit_code=127)
        result = service.install(artifact, target)
        assert result.error is not None
        assert result.error.code == "TOOLCHAIN_UNAVAILABLE"
        assert result.exit_code == 127

    def test_no_local_state_between_calls(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget
    ) -> None:
        """Every operation goes to the toolchain; nothing is answered from memory."""
        service.install(artifact, target)
        service.install(artifact, target)
        service.uninstall(artifact, target)
        assert [c[0] for c in FakeToolchain.calls] == ["install", "install", "uninstall"]


# ---------------------------------------------------------------------------
# uninstall()
# ---------------------------------------------------------------------------


class TestUninstall:
    def test_install_then_uninstall_round_trip(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget, prefix: Path
    ) -> None:
        service.install(artifact, target)
        result = service.uninstall(artifact, target)
        assert result.ok
        assert result.data["state"] == "absent"
        assert result.data["removed"] is True
        assert result.warnings == []
        assert not installed_copy(prefix).exists()

    def test_absent_is_noop_by_default(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget
    ) -> None:
        result = service.uninstall(artifact, target)
        assert result.ok
        assert result.data["state"] == "absent"
        assert result.data["removed"] is False
        assert len(result.warnings) == 1
        assert "not installed" in result.warnings[0]

    def test_absent_fails_when_strict(
        self, toolchain: FakeToolchain, artifact: Artifact, target: InstallTarget
    ) -> None:
        svc = LifecycleService(toolchain, missing_ok=False)
        result = svc.uninstall(artifact, target)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_INSTALLED"
        assert result.exit_code == 101

    def test_other_failures_propagate_regardless_of_policy(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget
    ) -> None:
        FakeToolchain.uninstall_error = _permission_denied()
        result = service.uninstall(artifact, target)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "TOOLCHAIN_FAILED"


# ---------------------------------------------------------------------------
# reinstall()
# ---------------------------------------------------------------------------


class TestReinstall:
    def test_refreshes_installed_copy(
        self,
        service: LifecycleService,
        artifact: Artifact,
        target: InstallTarget,
        prefix: Path,
        source_dir: Path,
    ) -> None:
        service.install(artifact, target)
        write_build(source_dir, b"track v2")

        result = service.reinstall(artifact, target)

        assert result.ok
        assert result.data["state"] == "installed"
        assert result.data["phases"]["uninstall"]["status"] == "ok"
        assert result.data["phases"]["install"]["status"] == "ok"
        assert installed_copy(prefix).read_bytes() == b"track v2"
        assert [c[0] for c in FakeToolchain.calls] == ["install", "uninstall", "install"]

    def test_never_installed_behaves_like_install(
        self,
        toolchain: FakeToolchain,
        artifact: Artifact,
        target: InstallTarget,
        prefix: Path,
        tmp_path: Path,
    ) -> None:
        reinstalled = LifecycleService(toolchain).reinstall(artifact, target)
        after_reinstall = installed_copy(prefix).read_bytes()

        other = InstallTarget(prefix=tmp_path / "other")
        installed = LifecycleService(toolchain).install(artifact, other)

        assert reinstalled.ok and installed.ok
        assert reinstalled.warnings == []
        assert reinstalled.data["phases"]["uninstall"]["status"] == "not_installed"
        assert reinstalled.data["state"] == installed.data["state"]
        assert after_reinstall == installed_copy(other.prefix).read_bytes()

    def test_install_phase_failure_leaves_prefix_empty(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget, prefix: Path
    ) -> None:
        service.install(artifact, target)
        FakeToolchain.install_error = _permission_denied()

        result = service.reinstall(artifact, target)

        assert not result.ok
        assert result.exit_code != 0
        assert result.data["state"] == "absent"
        assert result.data["phases"]["uninstall"]["status"] == "ok"
        assert result.data["phases"]["install"]["status"] == "failed"
        assert result.error is not None
        assert result.error.detail["phase"] == "install"
        assert not installed_copy(prefix).exists()

    def test_uninstall_failure_is_warning_not_abort(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget, prefix: Path
    ) -> None:
        FakeToolchain.uninstall_error = _permission_denied()

        result = service.reinstall(artifact, target)

        assert result.ok
        assert result.data["phases"]["uninstall"]["status"] == "failed"
        assert len(result.warnings) == 1
        assert "uninstall phase failed" in result.warnings[0]
        assert installed_copy(prefix).exists()

    def test_install_runs_even_after_uninstall_failure(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget
    ) -> None:
        FakeToolchain.uninstall_error = _permission_denied()
        FakeToolchain.install_error = _permission_denied()

        result = service.reinstall(artifact, target)

        assert not result.ok
        assert [c[0] for c in FakeToolchain.calls] == ["uninstall", "install"]
        assert result.data["phases"]["uninstall"]["status"] == "failed"
        assert result.data["phases"]["install"]["status"] == "failed"

    def test_not_installed_from_toolchain_is_silent(
        self, service: LifecycleService, artifact: Artifact, target: InstallTarget
    ) -> None:
        FakeToolchain.uninstall_error = ArtifactNotInstalled("not installed", exit_code=101)
        result = service.reinstall(artifact, target)
        assert result.ok
        assert result.warnings == []

    def test_strict_policy_does_not_affect_reinstall(
        self, toolchain: FakeToolchain, artifact: Artifact, target: InstallTarget
    ) -> None:
        result = LifecycleService(toolchain, missing_ok=False).reinstall(artifact, target)
        assert result.ok


# ---------------------------------------------------------------------------
# Plugin hooks
# ---------------------------------------------------------------------------


class _Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, object]]] = []

    @hookimpl
    def post_install(self, name: str, prefix: str) -> None:
        self.events.append(("post_install", {"name": name, "prefix": prefix}))

    @hookimpl
    def post_uninstall(self, name: str, prefix: str, removed: bool) -> None:
        self.events.append(("post_uninstall", {"name": name, "removed": removed}))

    @hookimpl
    def post_reinstall(self, name: str, prefix: str, phases: dict[str, object]) -> None:
        self.events.append(("post_reinstall", {"name": name, "phases": sorted(phases)}))


class _Exploding:
    @hookimpl
    def post_install(self, name: str, prefix: str) -> None:
        raise RuntimeError("boom")


class TestHooks:
    @pytest.fixture
    def recorder(self) -> _Recorder:
        return _Recorder()

    @pytest.fixture
    def hooked(self, toolchain: FakeToolchain, recorder: _Recorder) -> LifecycleService:
        pm = PluginManager()
        pm.register_plugin(recorder, name="recorder")
        return LifecycleService(toolchain, pm)

    def test_lifecycle_hooks_fire(
        self,
        hooked: LifecycleService,
        recorder: _Recorder,
        artifact: Artifact,
        target: InstallTarget,
    ) -> None:
        hooked.install(artifact, target)
        hooked.uninstall(artifact, target)
        hooked.uninstall(artifact, target)
        hooked.reinstall(artifact, target)
        assert [name for name, _ in recorder.events] == [
            "post_install",
            "post_uninstall",
            "post_uninstall",
            "post_reinstall",
        ]
        assert recorder.events[1][1]["removed"] is True
        assert recorder.events[2][1]["removed"] is False
        assert recorder.events[3][1]["phases"] == ["install", "uninstall"]

    def test_no_hook_after_failed_install(
        self,
        hooked: LifecycleService,
        recorder: _Recorder,
        artifact: Artifact,
        target: InstallTarget,
    ) -> None:
        FakeToolchain.install_error = _permission_denied()
        hooked.install(artifact, target)
        hooked.reinstall(artifact, target)
        assert recorder.events == []

    def test_plugin_failure_is_warning(
        self, toolchain: FakeToolchain, artifact: Artifact, target: InstallTarget
    ) -> None:
        pm = PluginManager()
        pm.register_plugin(_Exploding(), name="exploding")
        result = LifecycleService(toolchain, pm).install(artifact, target)
        assert result.ok
        assert result.warnings == ["Event dispatch failed for post_install"]
