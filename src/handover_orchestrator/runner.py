"""Orchestration loop -- drives the handover workflow one step at a time.

Each iteration::

    load state → policy.next_action → registry.resolve → handler.execute
    → store.persist → report.record

The loop runs strictly sequentially: the handler call is awaited to
completion before the record is read again, and the record written after
step *i* reflects only step *i*.

.. rubric:: Termination

* ``next_action`` returns ``None`` → ``completed``.
* ``max_steps`` successful steps taken → ``budgetExceeded``; the next run
  resumes from the persisted record.
* a handler fails → ``failedStep``; nothing is persisted for that step and
  :class:`HandlerExecutionError` is raised.
* a shutdown signal arrives → ``interrupted`` before the next iteration.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any

from src.handover_orchestrator.artifacts import ArtifactProbe
from src.handover_orchestrator.config import OrchestratorConfig
from src.handover_orchestrator.exceptions import (
    ConfigurationError,
    HandlerExecutionError,
    StateStoreError,
)
from src.handover_orchestrator.handlers import build_registry
from src.handover_orchestrator.policy import TransitionPolicy
from src.handover_orchestrator.registry import PersonaRegistry
from src.handover_orchestrator.report import RunReport
from src.handover_orchestrator.shutdown import GracefulShutdown
from src.handover_orchestrator.state import FileStateStore, StateStore
from src.workflow_shared.constants import DEFAULT_MAX_STEPS
from src.workflow_shared.logging import run_id_var
from src.workflow_shared.models import (
    Action,
    HandoverState,
    RunOutcome,
    StepRecord,
    StepStatus,
)
from src.workflow_shared.protocols import PhaseHandler

logger = logging.getLogger(__name__)


def _failure_message(result: Any) -> str | None:
    """Return an error message if *result* signals failure, else None."""
    if getattr(result, "success", True) is False:
        return getattr(result, "message", "") or "Handler reported failure"
    return None


class WorkflowRunner:
    """Runs the handover workflow under a step budget.

    Args:
        store: Where the handover record lives.
        policy: Decides the next action from the record.
        registry: Resolves handler keys to phase handlers.
        step_delay: Seconds to wait between successful steps.
        shutdown: Optional shutdown flag checked between iterations.
    """

    def __init__(
        self,
        store: StateStore,
        policy: TransitionPolicy,
        registry: PersonaRegistry,
        step_delay: float = 0.0,
        shutdown: GracefulShutdown | None = None,
    ) -> None:
        self.store = store
        self.policy = policy
        self.registry = registry
        self.step_delay = step_delay
        self.shutdown = shutdown
        self.report = RunReport()

    async def run(self, max_steps: int = DEFAULT_MAX_STEPS) -> RunReport:
        """Advance the workflow until it completes or the budget runs out.

        Returns:
            The report of this run (also kept on ``self.report``).

        Raises:
            ValueError: If *max_steps* is below 1.
            ConfigurationError: If the chosen handler is not registered.
            HandlerExecutionError: If a handler fails.
            StateStoreError: If the record cannot be written.
        """
        if max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {max_steps}")
        self.report = RunReport(max_steps=max_steps)
        token = run_id_var.set(self.report.run_id)
        try:
            logger.info("Starting run %s (max %d steps)", self.report.run_id, max_steps)
            await self._loop(self.report, max_steps)
            logger.info(
                "Run %s finished: %s", self.report.run_id, self.report.summarize()
            )
            return self.report
        finally:
            run_id_var.reset(token)

    async def _loop(self, report: RunReport, max_steps: int) -> None:
        steps_taken = 0
        while True:
            if self.shutdown is not None and self.shutdown.should_stop:
                logger.warning(
                    "Stopping after %d of %d step(s): %s",
                    steps_taken,
                    max_steps,
                    self.shutdown.reason or "stop requested",
                )
                report.finish(RunOutcome.INTERRUPTED, self.shutdown.reason)
                return

            state = self.store.load()
            logger.info("Current state: persona=%s phase=%s", state.persona, state.phase)
            action = self.policy.next_action(state)
            if action is None:
                report.finish(RunOutcome.COMPLETED)
                return

            try:
                handler = self.registry.resolve(action.handler_key)
            except ConfigurationError as exc:
                report.finish(RunOutcome.ABORTED, str(exc))
                raise

            await self._step(report, handler, state, action)
            steps_taken += 1
            if steps_taken >= max_steps:
                logger.warning("Step budget of %d exhausted", max_steps)
                report.finish(RunOutcome.BUDGET_EXCEEDED)
                return
            if self.step_delay > 0:
                await asyncio.sleep(self.step_delay)

    async def _step(
        self,
        report: RunReport,
        handler: PhaseHandler,
        state: HandoverState,
        action: Action,
    ) -> None:
        logger.info(
            "Executing %s with prompt from %s", action.handler_key, action.source_artifact
        )
        started_at = datetime.now(timezone.utc).isoformat()
        start = time.perf_counter()

        def _record(status: StepStatus, error: str = "") -> None:
            report.record(
                StepRecord(
                    handler_key=action.handler_key,
                    started_at=started_at,
                    duration_ms=(time.perf_counter() - start) * 1000,
                    status=status,
                    error_message=error,
                    source_artifact=action.source_artifact,
                    next_phase=action.next_phase,
                )
            )

        cause: BaseException | None = None
        try:
            failure = _failure_message(await handler.execute(action))
        except Exception as exc:
            cause = exc
            failure = f"{type(exc).__name__}: {exc}"
        if failure is not None:
            logger.error("Handler %s failed: %s", action.handler_key, failure)
            _record(StepStatus.FAILED, failure)
            report.finish(RunOutcome.FAILED_STEP, failure)
            raise HandlerExecutionError(action.handler_key, failure, report) from cause

        try:
            self.store.persist(
                state, {"persona": action.persona_marker, "phase": action.next_phase}
            )
        except StateStoreError as exc:
            _record(StepStatus.FAILED, str(exc))
            report.finish(RunOutcome.FAILED_STEP, str(exc))
            raise
        _record(StepStatus.COMPLETED)
        logger.info("Step %s completed -> %s", action.handler_key, action.next_phase)


def build_runner(
    config: OrchestratorConfig,
    shutdown: GracefulShutdown | None = None,
    registry: PersonaRegistry | None = None,
) -> WorkflowRunner:
    """Wire a file-backed runner from *config*.

    Raises:
        ConfigurationError: If the persona config is invalid.
    """
    probe = ArtifactProbe(config.workspace_root)
    return WorkflowRunner(
        store=FileStateStore(config.handover_path),
        policy=TransitionPolicy(probe, config.preconditions),
        registry=registry if registry is not None else build_registry(config),
        step_delay=config.step_delay,
        shutdown=shutdown,
    )
