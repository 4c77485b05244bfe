"""Configuration dataclasses and loader for the handover orchestrator."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from src.handover_orchestrator.exceptions import ConfigurationError

from src.workflow_shared.constants import (
    DEFAULT_HANDLER_TIMEOUT,
    DEFAULT_MAX_STEPS,
    DEFAULT_PRECONDITIONS,
    DEFAULT_TOKEN_ENV,
    HANDOVER_FILE,
    LOG_FILE,
    REPORTS_DIR,
)
from src.workflow_shared.models import PersonaKey


@dataclass
class HandlerConfig:
    """Configuration for one command-backed phase handler."""

    command: list[str] = field(default_factory=list)
    timeout: int = DEFAULT_HANDLER_TIMEOUT
    cwd: str = ""


@dataclass
class OrchestratorConfig:
    """Top-level configuration for one orchestrator process."""

    handover_file: str = HANDOVER_FILE
    workspace_root: str = "."
    max_steps: int = DEFAULT_MAX_STEPS
    step_delay: float = 0.0
    reports_dir: str = REPORTS_DIR
    log_file: str = LOG_FILE
    log_level: str = "INFO"
    token_env: str = DEFAULT_TOKEN_ENV
    token: str = field(default="", repr=False)
    preconditions: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_PRECONDITIONS)
    )
    personas: dict[str, HandlerConfig] = field(default_factory=dict)

    def resolve(self, path: str) -> Path:
        """Resolve *path* against ``workspace_root`` unless it is absolute."""
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return Path(self.workspace_root) / candidate

    @property
    def handover_path(self) -> Path:
        return self.resolve(self.handover_file)


def _pick(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter *data* to only keys accepted by *cls*."""
    valid = {f.name for f in cls.__dataclass_fields__.values()}
    return {k: v for k, v in data.items() if k in valid}


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(
            f"'{where}' must be a mapping, got {type(value).__name__}"
        )
    return value


def _positive_int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"'{where}' must be a positive integer, got {value!r}")
    return value


def _load_personas(raw: dict[str, Any]) -> dict[str, HandlerConfig]:
    """Parse the ``personas`` section, keyed by handler key."""
    known = {p.value for p in PersonaKey}
    personas: dict[str, HandlerConfig] = {}
    for key, section in raw.items():
        handler_key = str(key).lower()
        if handler_key not in known:
            # Surfaced when the registry is built, not here
            personas[handler_key] = HandlerConfig()
            continue
        section = _mapping(section, f"personas.{handler_key}")
        command = section.get("command") or []
        if isinstance(command, str):
            command = command.split()
        elif not isinstance(command, list):
            raise ConfigurationError(
                f"'personas.{handler_key}.command' must be a list or a string"
            )
        picked = _pick(section, HandlerConfig)
        if "timeout" in picked:
            _positive_int(picked["timeout"], f"personas.{handler_key}.timeout")
        personas[handler_key] = HandlerConfig(
            **{**picked, "command": [str(part) for part in command]}
        )
    return personas


def load_orchestrator_config(path: Path | str | None = None) -> OrchestratorConfig:
    """Load orchestrator configuration from a YAML file.

    Missing sections fall back to defaults.  Unknown keys are silently
    ignored so that forward-compatible config files work.

    Args:
        path: Path to config YAML.  If ``None`` or the file does not
              exist, returns full defaults.

    Returns:
        Populated configuration dataclass.

    Raises:
        ConfigurationError: If the file is not valid YAML or a known
            section has the wrong shape.
    """
    if path is None:
        return OrchestratorConfig()

    path = Path(path)
    if not path.exists():
        return OrchestratorConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    raw = _mapping(loaded, str(path))

    top_level = _pick(raw, OrchestratorConfig)
    for key in ("preconditions", "personas", "token"):
        top_level.pop(key, None)
    if "max_steps" in top_level:
        _positive_int(top_level["max_steps"], "max_steps")

    preconditions = dict(DEFAULT_PRECONDITIONS)
    for persona, artifact in _mapping(raw.get("preconditions"), "preconditions").items():
        marker = str(persona).upper()
        if artifact:
            preconditions[marker] = str(artifact)
        else:
            # An explicit null removes the default precondition
            preconditions.pop(marker, None)

    return OrchestratorConfig(
        preconditions=preconditions,
        personas=_load_personas(_mapping(raw.get("personas"), "personas")),
        **top_level,
    )


def resolve_token(
    config: OrchestratorConfig, environ: Mapping[str, str] | None = None
) -> OrchestratorConfig:
    """Copy the credential named by ``config.token_env`` into ``config.token``.

    This is the only place the environment is read; the orchestration
    core receives the value through the config.
    """
    environ = os.environ if environ is None else environ
    config.token = environ.get(config.token_env, "")
    return config
