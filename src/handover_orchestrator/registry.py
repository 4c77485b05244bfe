"""Persona registry: handler key → phase handler instance."""

from __future__ import annotations

import logging
from typing import Iterator, Mapping

from src.handover_orchestrator.exceptions import ConfigurationError
from src.workflow_shared.models import PersonaKey
from src.workflow_shared.protocols import PhaseHandler

logger = logging.getLogger(__name__)


def _coerce_key(handler_key: str | PersonaKey) -> PersonaKey:
    if isinstance(handler_key, PersonaKey):
        return handler_key
    try:
        return PersonaKey(str(handler_key).lower())
    except ValueError:
        raise ConfigurationError(f"Unknown handler key '{handler_key}'") from None


class PersonaRegistry:
    """Static mapping from ``PersonaKey`` to ``PhaseHandler``.

    Populated once at startup.  ``resolve`` hands back the registered
    instance as-is; errors raised by the handler are never wrapped here.
    """

    def __init__(
        self, handlers: Mapping[str | PersonaKey, PhaseHandler] | None = None
    ) -> None:
        self._handlers: dict[PersonaKey, PhaseHandler] = {}
        for key, handler in (handlers or {}).items():
            self.register(key, handler)

    def register(self, handler_key: str | PersonaKey, handler: PhaseHandler) -> None:
        key = _coerce_key(handler_key)
        if not isinstance(handler, PhaseHandler):
            raise ConfigurationError(
                f"Handler for '{key.value}' does not implement execute()"
            )
        if key in self._handlers:
            logger.warning("Replacing handler for '%s'", key.value)
        self._handlers[key] = handler

    def resolve(self, handler_key: str | PersonaKey) -> PhaseHandler:
        """Return the handler for *handler_key*.

        Raises:
            ConfigurationError: If the key is unknown or not registered.
        """
        key = _coerce_key(handler_key)
        handler = self._handlers.get(key)
        if handler is None:
            raise ConfigurationError(f"No handler registered for '{key.value}'")
        return handler

    def __contains__(self, handler_key: object) -> bool:
        try:
            return _coerce_key(handler_key) in self._handlers  # type: ignore[arg-type]
        except ConfigurationError:
            return False

    def __iter__(self) -> Iterator[PersonaKey]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)
