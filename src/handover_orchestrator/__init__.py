"""Handover-driven workflow orchestrator.

Drives the persona workflow

    PM → Architect → Developer → QA → Security → DevOps → Release Manager

one step at a time from the state recorded in the handover document.
"""

__version__ = "1.0.0"
