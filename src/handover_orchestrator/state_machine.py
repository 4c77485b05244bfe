"""Persona workflow graph using the ``transitions`` library.

States are the persona markers of the handover record.  Every
non-terminal persona has two triggers:

* ``advance`` -- to the next persona, guarded by ``precondition_met``;
* ``rework`` -- back to itself, guarded by the negation, so a missing
  precondition artifact re-runs the persona that should produce it.

The policy only ever asks ``may_advance()`` / ``may_rework()``; no trigger
is fired, so evaluating the graph never changes anything.
"""

from __future__ import annotations

import logging
from typing import Any

from transitions import Machine

from src.workflow_shared.constants import WORKFLOW_ORDER

logger = logging.getLogger(__name__)

STATES: list[str] = list(WORKFLOW_ORDER)


def _build_transitions() -> list[dict[str, Any]]:
    transitions: list[dict[str, Any]] = []
    for source, dest in zip(WORKFLOW_ORDER, WORKFLOW_ORDER[1:]):
        transitions.append(
            {
                "trigger": "advance",
                "source": source,
                "dest": dest,
                "conditions": ["precondition_met"],
            }
        )
        transitions.append(
            {
                "trigger": "rework",
                "source": source,
                "dest": source,
                "unless": ["precondition_met"],
            }
        )
    return transitions


TRANSITIONS: list[dict[str, Any]] = _build_transitions()


def create_workflow_machine(model: Any, initial_state: str) -> Machine:
    """Create and return a ``Machine`` bound to *model*.

    The model object must implement ``precondition_met``.

    Args:
        model: The object whose state the machine manages.
        initial_state: Persona marker to start from.

    Returns:
        Configured ``Machine`` instance.
    """
    return Machine(
        model=model,
        states=STATES,
        transitions=TRANSITIONS,
        initial=initial_state,
        auto_transitions=False,
        ignore_invalid_triggers=True,
    )


def successor(machine: Machine, persona: str) -> str | None:
    """Destination of ``advance`` from *persona*, or None at the end."""
    candidates = machine.get_transitions(trigger="advance", source=persona)
    return candidates[0].dest if candidates else None
