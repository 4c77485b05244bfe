"""Command-backed phase handlers.

Each persona can be wired to an external command (an agent CLI, a
script, ...).  The command receives the prompt on stdin and the action
details in ``BMAD_*`` environment variables.  The configured credential
is passed through untouched; other well-known secrets are filtered out.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Mapping

from src.handover_orchestrator.config import HandlerConfig, OrchestratorConfig
from src.handover_orchestrator.exceptions import ConfigurationError
from src.handover_orchestrator.registry import PersonaRegistry
from src.workflow_shared.models import Action, HandlerResult, PersonaKey

logger = logging.getLogger(__name__)

# Keys to filter from subprocess environments to avoid leaking secrets.
_FILTERED_ENV_KEYS = {"ANTHROPIC_API_KEY", "OPENAI_API_KEY", "AWS_SECRET_ACCESS_KEY"}

_OUTPUT_LIMIT = 4000


def _filtered_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return a copy of the environment with secret keys removed."""
    environ = os.environ if environ is None else environ
    return {k: v for k, v in environ.items() if k not in _FILTERED_ENV_KEYS}


class CommandHandler:
    """Runs one persona as an external command."""

    def __init__(
        self,
        persona: PersonaKey,
        command: list[str],
        timeout: int,
        cwd: Path | str | None = None,
        token_env: str = "",
        token: str = "",
    ) -> None:
        if not command:
            raise ConfigurationError(f"Empty command for persona '{persona.value}'")
        self.persona = persona
        self.command = list(command)
        self.timeout = timeout
        self.cwd = Path(cwd) if cwd else None
        self._token_env = token_env
        self._token = token

    def build_env(self, context: Action) -> dict[str, str]:
        env = _filtered_env()
        env.update(
            {
                "BMAD_PERSONA": context.persona_marker,
                "BMAD_PROMPT": context.prompt,
                "BMAD_SOURCE_ARTIFACT": context.source_artifact,
                "BMAD_NEXT_PHASE": context.next_phase,
            }
        )
        if self._token_env and self._token:
            env[self._token_env] = self._token
        return env

    async def execute(self, context: Action) -> HandlerResult:
        logger.info("Activating persona %s: %s", self.persona.value, " ".join(self.command))
        proc = None
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.cwd) if self.cwd else None,
                env=self.build_env(context),
            )
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(context.prompt.encode("utf-8")),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Persona %s timed out after %ds", self.persona.value, self.timeout)
            return HandlerResult(
                success=False,
                message=f"Timed out after {self.timeout}s",
            )
        except FileNotFoundError as exc:
            return HandlerResult(success=False, message=f"Command not found: {exc}")
        finally:
            if proc is not None and proc.returncode is None:
                proc.kill()
                await proc.wait()

        output = stdout.decode(errors="replace")[-_OUTPUT_LIMIT:]
        if proc.returncode != 0:
            error_text = stderr.decode(errors="replace").strip()
            return HandlerResult(
                success=False,
                exit_code=proc.returncode,
                output=output,
                message=f"Exit {proc.returncode}: {error_text[:500]}",
            )
        return HandlerResult(success=True, exit_code=0, output=output)


def build_handler(
    persona: PersonaKey, handler_config: HandlerConfig, config: OrchestratorConfig
) -> CommandHandler:
    cwd = config.resolve(handler_config.cwd) if handler_config.cwd else Path(config.workspace_root)
    return CommandHandler(
        persona=persona,
        command=handler_config.command,
        timeout=handler_config.timeout,
        cwd=cwd,
        token_env=config.token_env,
        token=config.token,
    )


def build_registry(config: OrchestratorConfig) -> PersonaRegistry:
    """Register a ``CommandHandler`` for every persona with a command.

    Personas without a command stay unregistered; resolving them later
    raises ``ConfigurationError``.

    Raises:
        ConfigurationError: If the config names an unknown persona.
    """
    registry = PersonaRegistry()
    for key, handler_config in config.personas.items():
        try:
            persona = PersonaKey(key)
        except ValueError:
            raise ConfigurationError(f"Unknown persona '{key}' in config") from None
        if not handler_config.command:
            logger.debug("No command configured for %s", key)
            continue
        registry.register(persona, build_handler(persona, handler_config, config))
    if not config.token:
        logger.warning("%s is not set; handlers run without a credential", config.token_env)
    return registry
