"""Tests for PersonaRegistry."""

from __future__ import annotations

import pytest

from src.handover_orchestrator.exceptions import ConfigurationError
from src.handover_orchestrator.registry import PersonaRegistry
from src.workflow_shared.models import PersonaKey
from tests.workflow.conftest import RecordingHandler


class TestRegister:
    def test_accepts_enum_and_string_keys(self) -> None:
        registry = PersonaRegistry()
        pm, qa = RecordingHandler(), RecordingHandler()
        registry.register(PersonaKey.PM, pm)
        registry.register("QA", qa)

        assert registry.resolve("pm") is pm
        assert registry.resolve(PersonaKey.QA) is qa
        assert len(registry) == 2

    def test_rejects_unknown_key(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown handler key"):
            PersonaRegistry().register("wizard", RecordingHandler())

    def test_rejects_object_without_execute(self) -> None:
        with pytest.raises(ConfigurationError):
            PersonaRegistry().register("pm", object())  # type: ignore[arg-type]

    def test_replace_keeps_latest(self) -> None:
        registry = PersonaRegistry()
        first, second = RecordingHandler(), RecordingHandler()
        registry.register("pm", first)
        registry.register("pm", second)
        assert registry.resolve("pm") is second
        assert len(registry) == 1


class TestResolve:
    def test_unregistered_key(self) -> None:
        with pytest.raises(ConfigurationError, match="No handler registered for 'devops'"):
            PersonaRegistry().resolve("devops")

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigurationError):
            PersonaRegistry().resolve("nobody")

    def test_contains_and_iter(self, registry: PersonaRegistry) -> None:
        assert "architect" in registry
        assert PersonaKey.RELEASE_MANAGER in registry
        assert "nobody" not in registry
        assert set(registry) == set(PersonaKey)

    @pytest.mark.asyncio
    async def test_handler_errors_pass_through(self) -> None:
        handler = RecordingHandler(error=KeyError("inner"))
        registry = PersonaRegistry({"qa": handler})
        with pytest.raises(KeyError):
            await registry.resolve("qa").execute(None)  # type: ignore[arg-type]
