"""Runtime-checkable protocols for phase handlers."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from src.workflow_shared.models import Action


@runtime_checkable
class PhaseHandler(Protocol):
    """Protocol for the unit of work behind one workflow phase."""

    async def execute(self, context: Action) -> Any:
        """Run the phase.

        Args:
            context: The action chosen by the transition policy.  Carries
                the prompt and where it came from.

        Returns:
            An implementation-defined result.  A result whose ``success``
            attribute is ``False`` signals failure, as does raising.
        """
        ...
