"""Installation state machine and saga phase outcomes.

Per (artifact, target) pair the only tracked states are ``absent`` and
``installed``.  The initial state is whatever the prefix holds when the
process starts; it is never held in memory across invocations.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class InstallState(StrEnum):
    """Whether a prefix holds a copy of the artifact."""

    ABSENT = "absent"
    INSTALLED = "installed"


class Operation(StrEnum):
    """The three lifecycle verbs."""

    INSTALL = "install"
    UNINSTALL = "uninstall"
    REINSTALL = "reinstall"


class PhaseStatus(StrEnum):
    """Outcome tag for one step of an operation."""

    OK = "ok"
    NOT_INSTALLED = "not_installed"
    FAILED = "failed"


# --- Transition map (state after a successful operation, any start state) ---

TRANSITIONS: dict[str, dict[str, str]] = {
    "install": {"absent": "installed", "installed": "installed"},
    "uninstall": {"absent": "absent", "installed": "absent"},
    "reinstall": {"absent": "installed", "installed": "installed"},
}


def next_state(op: str, *, ok: bool) -> str:
    """Return the state a prefix is left in after *op*.

    Successful operations land in the same state regardless of where they
    started.  A failed ``reinstall`` has already run its uninstall phase,
    so it leaves the prefix empty; failed ``install``/``uninstall`` make no
    claim and return an empty string.
    """
    if ok:
        return TRANSITIONS[op]["absent"]
    if op == Operation.REINSTALL:
        return str(InstallState.ABSENT)
    return ""


class PhaseOutcome(BaseModel):
    """Tagged outcome of one phase of a two-phase reinstall."""

    model_config = {"frozen": True}

    phase: str
    status: PhaseStatus
    message: str = ""
    exit_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.status in (PhaseStatus.OK, PhaseStatus.NOT_INSTALLED)
