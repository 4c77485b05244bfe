"""Transition policy: decides the next action from the handover state.

Evaluation is a pure function of the handover state and the artifact
files on disk.  Given the same inputs it returns an equal ``Action``
(or ``None``), which keeps runs replayable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from src.handover_orchestrator.artifacts import ArtifactProbe
from src.handover_orchestrator.state_machine import create_workflow_machine, successor
from src.workflow_shared.constants import (
    DEFAULT_PRECONDITIONS,
    PHASE_ARCHITECTURE,
    PHASE_DEPLOYMENT,
    PHASE_IMPLEMENTATION,
    PHASE_PLANNING,
    PHASE_QA,
    PHASE_RELEASE,
    PHASE_SECURITY,
    SOURCE_SYSTEM_INIT,
    TERMINAL_PERSONA,
)
from src.workflow_shared.models import Action, HandoverState, PersonaKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowNode:
    """One persona in the workflow graph.

    ``instruction`` is the default prompt when this persona is invoked and
    may reference ``{source}``.  ``handoff`` names what the persona hands
    on when it has no precondition artifact of its own.
    """

    persona: PersonaKey
    title: str
    phase: str
    instruction: str
    handoff: str = ""

    @property
    def prompt_section(self) -> str:
        return f"{self.title} Prompt"


WORKFLOW_NODES: dict[str, WorkflowNode] = {
    node.persona.marker: node
    for node in (
        WorkflowNode(
            PersonaKey.PM,
            "PM",
            PHASE_PLANNING,
            "Analyze the issue and create a PRD.",
        ),
        WorkflowNode(
            PersonaKey.ARCHITECT,
            "Architect",
            PHASE_ARCHITECTURE,
            "Design the system architecture based on the PRD.",
        ),
        WorkflowNode(
            PersonaKey.DEVELOPER,
            "Developer",
            PHASE_IMPLEMENTATION,
            "Implement the specification defined in {source}",
            handoff="Implementation",
        ),
        WorkflowNode(
            PersonaKey.QA,
            "QA",
            PHASE_QA,
            "Verify the implementation against the PRD and Architecture Spec.",
            handoff="QA Report",
        ),
        WorkflowNode(
            PersonaKey.SECURITY,
            "Security",
            PHASE_SECURITY,
            "Perform a security review of the code and dependencies.",
            handoff="Security Audit",
        ),
        WorkflowNode(
            PersonaKey.DEVOPS,
            "DevOps",
            PHASE_DEPLOYMENT,
            "Prepare the deployment pipeline and infrastructure.",
            handoff="Deployment Readiness",
        ),
        WorkflowNode(
            PersonaKey.RELEASE_MANAGER,
            "Release Manager",
            PHASE_RELEASE,
            "Coordinate the final release, close the issue, and publish release notes.",
        ),
    )
}


class _PolicyModel:
    """State machine model exposing the precondition guard."""

    def __init__(self, probe: ArtifactProbe, preconditions: Mapping[str, str]) -> None:
        self._probe = probe
        self._preconditions = preconditions
        self.state: str = ""

    def precondition_artifact(self) -> str | None:
        return self._preconditions.get(self.state)

    def precondition_met(self, *args, **kwargs) -> bool:
        """True when the current persona has no precondition or its artifact exists."""
        artifact = self.precondition_artifact()
        return artifact is None or self._probe.exists(artifact)


class TransitionPolicy:
    """Maps a handover state to the next ``Action``.

    Args:
        probe: Artifact access used for preconditions and prompts.
        preconditions: Persona marker to precondition artifact path.
            Defaults to the planning document for PM and the architecture
            spec for ARCHITECT.
    """

    def __init__(
        self,
        probe: ArtifactProbe,
        preconditions: Mapping[str, str] | None = None,
    ) -> None:
        self.probe = probe
        self.preconditions = dict(
            DEFAULT_PRECONDITIONS if preconditions is None else preconditions
        )

    def next_action(self, state: HandoverState) -> Action | None:
        """Decide what to run next.

        Returns:
            The action to take, or ``None`` when the workflow is complete
            or the persona is not part of the graph (including
            ``UNKNOWN``).
        """
        node = WORKFLOW_NODES.get(state.persona)
        if node is None:
            logger.info("Persona %r is not a workflow node; nothing to do", state.persona)
            return None
        if state.persona == TERMINAL_PERSONA:
            logger.info("Terminal persona %s reached; workflow complete", state.persona)
            return None

        model = _PolicyModel(self.probe, self.preconditions)
        machine = create_workflow_machine(model, state.persona)
        artifact = model.precondition_artifact()

        if model.may_advance():  # type: ignore[attr-defined]
            dest = WORKFLOW_NODES[successor(machine, state.persona)]
            return self._advance(node, dest, artifact)
        if model.may_rework():  # type: ignore[attr-defined]
            logger.warning(
                "Precondition %s missing for %s; re-running %s",
                artifact,
                state.persona,
                node.persona.value,
            )
            return Action(
                handler_key=node.persona.value,
                prompt=node.instruction.format(source=SOURCE_SYSTEM_INIT),
                source_artifact=SOURCE_SYSTEM_INIT,
                next_phase=node.phase,
            )
        return None

    def _advance(
        self, node: WorkflowNode, dest: WorkflowNode, artifact: str | None
    ) -> Action:
        source = artifact or node.handoff
        prompt = None
        if artifact:
            prompt = self.probe.extract_section(artifact, dest.prompt_section)
        if not prompt:
            prompt = dest.instruction.format(source=source)
        return Action(
            handler_key=dest.persona.value,
            prompt=prompt,
            source_artifact=source,
            next_phase=dest.phase,
        )
