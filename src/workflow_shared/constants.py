"""Shared constants for the handover workflow."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Persona markers (as written into the handover record)
# ---------------------------------------------------------------------------
PERSONA_PM = "PM"
PERSONA_ARCHITECT = "ARCHITECT"
PERSONA_DEVELOPER = "DEVELOPER"
PERSONA_QA = "QA"
PERSONA_SECURITY = "SECURITY"
PERSONA_DEVOPS = "DEVOPS"
PERSONA_RELEASE_MANAGER = "RELEASEMANAGER"

UNKNOWN = "UNKNOWN"

WORKFLOW_ORDER = [
    PERSONA_PM,
    PERSONA_ARCHITECT,
    PERSONA_DEVELOPER,
    PERSONA_QA,
    PERSONA_SECURITY,
    PERSONA_DEVOPS,
    PERSONA_RELEASE_MANAGER,
]

TERMINAL_PERSONA = PERSONA_RELEASE_MANAGER

# ---------------------------------------------------------------------------
# Phase labels
# ---------------------------------------------------------------------------
PHASE_PLANNING = "Planning"
PHASE_ARCHITECTURE = "Architecture Design"
PHASE_IMPLEMENTATION = "Implementation"
PHASE_QA = "Quality Assurance"
PHASE_SECURITY = "Security Review"
PHASE_DEPLOYMENT = "DevOps & Deployment"
PHASE_RELEASE = "Release Management"

# ---------------------------------------------------------------------------
# Provenance sentinels
# ---------------------------------------------------------------------------
SOURCE_SYSTEM_INIT = "System Init"

# ---------------------------------------------------------------------------
# Default precondition artifacts
# ---------------------------------------------------------------------------
DEFAULT_PLANNING_DOC = "docs/planning/PRD-user-authentication.md"
DEFAULT_ARCHITECTURE_SPEC = "docs/architecture/SPEC-user-authentication.md"

DEFAULT_PRECONDITIONS: dict[str, str] = {
    PERSONA_PM: DEFAULT_PLANNING_DOC,
    PERSONA_ARCHITECT: DEFAULT_ARCHITECTURE_SPEC,
}

# ---------------------------------------------------------------------------
# Record and run defaults
# ---------------------------------------------------------------------------
HANDOVER_FILE = ".github/BMAD_HANDOVER.md"
REPORTS_DIR = ".github/reports"
LOG_FILE = ".github/logs/workflow.log"
CONFIG_FILE = ".github/bmad-orchestrator.yaml"
DEFAULT_MAX_STEPS = 20
DEFAULT_HANDLER_TIMEOUT = 900  # 15 minutes
DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"
