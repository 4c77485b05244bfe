"""Shared data models for the handover workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from src.workflow_shared.constants import UNKNOWN


class PersonaKey(str, Enum):
    """Closed set of phase handler identifiers.

    The value is the handler key used in actions and config; the persona
    marker written into the handover record is the upper-cased value.
    """
    PM = "pm"
    ARCHITECT = "architect"
    DEVELOPER = "developer"
    QA = "qa"
    SECURITY = "security"
    DEVOPS = "devops"
    RELEASE_MANAGER = "releasemanager"

    @property
    def marker(self) -> str:
        return self.value.upper()


class StepStatus(str, Enum):
    """Outcome of a single loop iteration."""
    COMPLETED = "completed"
    FAILED = "failed"


class RunOutcome(str, Enum):
    """Terminal outcome of one orchestration run."""
    COMPLETED = "completed"
    BUDGET_EXCEEDED = "budgetExceeded"
    FAILED_STEP = "failedStep"
    INTERRUPTED = "interrupted"
    ABORTED = "aborted"


@dataclass(frozen=True)
class HandoverState:
    """Snapshot of the handover record.

    ``raw`` keeps the full record text so that field patches leave every
    other part of the document untouched.
    """
    persona: str = UNKNOWN
    phase: str = UNKNOWN
    raw: str = ""

    @property
    def is_unknown(self) -> bool:
        return self.persona == UNKNOWN


@dataclass(frozen=True)
class Action:
    """The next step chosen by the transition policy."""
    handler_key: str
    prompt: str
    source_artifact: str
    next_phase: str

    @property
    def persona_marker(self) -> str:
        return self.handler_key.upper()


@dataclass(frozen=True)
class StepRecord:
    """Audit entry for one loop iteration attempt."""
    handler_key: str
    started_at: str
    duration_ms: float
    status: StepStatus
    error_message: str = ""
    source_artifact: str = ""
    next_phase: str = ""


@dataclass
class HandlerResult:
    """Result returned by a phase handler.

    Handlers may return any object; only ``success`` is inspected by the
    orchestration loop.
    """
    success: bool = True
    message: str = ""
    exit_code: int | None = None
    output: str = ""
    artifacts: list[str] = field(default_factory=list)
