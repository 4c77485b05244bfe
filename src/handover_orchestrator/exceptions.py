"""Custom exceptions for the handover orchestrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.handover_orchestrator.report import RunReport


class OrchestratorError(Exception):
    """Base exception for all orchestrator errors."""

    pass


class ConfigurationError(OrchestratorError):
    """Raised for configuration issues (unknown handler key, bad config, etc.)."""

    pass


class HandlerExecutionError(OrchestratorError):
    """Raised when a phase handler fails; stops the run."""

    def __init__(
        self,
        handler_key: str,
        message: str = "",
        report: RunReport | None = None,
    ) -> None:
        self.handler_key = handler_key
        self.report = report
        super().__init__(message or f"Handler '{handler_key}' failed")


class StateStoreError(OrchestratorError):
    """Raised when the handover record cannot be written."""

    def __init__(self, path: str, message: str = "") -> None:
        self.path = path
        super().__init__(message or f"Could not persist handover record '{path}'")
