"""Shared fixtures for the handover orchestrator tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from src.handover_orchestrator.artifacts import ArtifactProbe
from src.handover_orchestrator.policy import TransitionPolicy
from src.handover_orchestrator.registry import PersonaRegistry
from src.workflow_shared.constants import DEFAULT_ARCHITECTURE_SPEC, DEFAULT_PLANNING_DOC
from src.workflow_shared.models import Action, PersonaKey


def make_record(persona: str = "PM", phase: str = "Planning") -> str:
    """Build a handover record with notes around the markers."""
    return (
        "# BMAD Handover\n"
        "\n"
        "## Current Persona\n"
        "\n"
        f"**[{persona}]**\n"
        "\n"
        "## Current Phase\n"
        "\n"
        f"**{phase}**\n"
        "\n"
        "## Notes\n"
        "\n"
        "- Metrics: 3 issues open, 12 commits\n"
        "- Keep **bold** text and [links](https://example.com) intact.\n"
    )


PRD_WITH_PROMPT = (
    "# PRD: User Authentication\n"
    "\n"
    "## Overview\n"
    "Users log in with email and password.\n"
    "\n"
    "## Architect Prompt\n"
    "Design X\n"
    "\n"
    "## Rollout\n"
    "Staged.\n"
)


class RecordingHandler:
    """Phase handler double that records every call."""

    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[Action] = []

    async def execute(self, context: Action) -> Any:
        self.calls.append(context)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def probe(tmp_path: Path) -> ArtifactProbe:
    return ArtifactProbe(tmp_path)


@pytest.fixture
def policy(probe: ArtifactProbe) -> TransitionPolicy:
    return TransitionPolicy(probe)


@pytest.fixture
def write_artifact(tmp_path: Path):
    """Return a helper that writes a document under the workspace."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def full_artifacts(write_artifact) -> None:
    """Planning document and architecture spec both present."""
    write_artifact(DEFAULT_PLANNING_DOC, PRD_WITH_PROMPT)
    write_artifact(DEFAULT_ARCHITECTURE_SPEC, "# Spec\n\n## Components\nAuth service.\n")


@pytest.fixture
def handlers() -> dict[PersonaKey, RecordingHandler]:
    return {key: RecordingHandler() for key in PersonaKey}


@pytest.fixture
def registry(handlers: dict[PersonaKey, RecordingHandler]) -> PersonaRegistry:
    return PersonaRegistry(handlers)
