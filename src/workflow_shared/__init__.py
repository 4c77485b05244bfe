"""Shared models, protocols, constants, and utilities for the handover workflow.

This package is the foundation layer for ``handover_orchestrator``.  It has
no knowledge of the orchestration loop and can be imported on its own.
"""

__version__ = "1.0.0"
