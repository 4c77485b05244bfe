"""Command-line interface for the handover orchestrator."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer

from src.handover_orchestrator import __version__
from src.handover_orchestrator.artifacts import ArtifactProbe
from src.handover_orchestrator.config import (
    OrchestratorConfig,
    load_orchestrator_config,
    resolve_token,
)
from src.handover_orchestrator.display import (
    print_error_panel,
    print_handover_header,
    print_message,
    print_next_action,
    print_report,
)
from src.handover_orchestrator.exceptions import (
    ConfigurationError,
    HandlerExecutionError,
    StateStoreError,
)
from src.handover_orchestrator.policy import TransitionPolicy
from src.handover_orchestrator.report import RunReport
from src.handover_orchestrator.runner import WorkflowRunner, build_runner
from src.handover_orchestrator.shutdown import GracefulShutdown
from src.handover_orchestrator.state import FileStateStore
from src.workflow_shared.constants import CONFIG_FILE
from src.workflow_shared.logging import setup_logging
from src.workflow_shared.models import RunOutcome
from src.workflow_shared.utils import atomic_write_text

logger = logging.getLogger(__name__)

EXIT_FAILED_STEP = 1
EXIT_CONFIGURATION = 2

_DEFAULT_CONFIG_TEMPLATE = """\
# Handover orchestrator configuration
handover_file: .github/BMAD_HANDOVER.md
workspace_root: .
max_steps: 20
step_delay: 0
reports_dir: .github/reports
log_file: .github/logs/workflow.log
log_level: INFO
token_env: GITHUB_TOKEN

# Persona marker -> document that must exist before the workflow advances.
preconditions:
  PM: docs/planning/PRD-user-authentication.md
  ARCHITECT: docs/architecture/SPEC-user-authentication.md

# Handler key -> command run for that persona.  The prompt arrives on stdin
# and in BMAD_PROMPT.
personas:
  pm:
    command: []
    timeout: 900
  architect:
    command: []
  developer:
    command: []
  qa:
    command: []
  security:
    command: []
  devops:
    command: []
  releasemanager:
    command: []
"""

_DEFAULT_HANDOVER_TEMPLATE = """\
# BMAD Handover

## Current Persona

**[PM]**

## Current Phase

**Planning**

## Notes

"""

app = typer.Typer(
    name="handover-orchestrator",
    help="Drive the persona workflow from the handover record.",
    no_args_is_help=True,
)

_CONFIG_OPTION = typer.Option(
    Path(CONFIG_FILE), "--config", "-c", help="Path to the orchestrator YAML config."
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"handover-orchestrator {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Handover-driven workflow orchestrator."""


def _load_config(config_path: Path) -> OrchestratorConfig:
    """Load the config, exiting with the configuration exit code when it is invalid."""
    try:
        return load_orchestrator_config(config_path)
    except ConfigurationError as exc:
        print_error_panel(exc)
        raise typer.Exit(code=EXIT_CONFIGURATION)


def _abort_run(exc: ConfigurationError) -> NoReturn:
    """Report a run that could not start and exit with the configuration code."""
    print_error_panel(exc)
    report = RunReport()
    report.finish(RunOutcome.ABORTED, str(exc))
    print_report(report)
    raise typer.Exit(code=EXIT_CONFIGURATION)


async def _run_with_shutdown(runner: WorkflowRunner, max_steps: int) -> None:
    if runner.shutdown is not None:
        runner.shutdown.install()
    await runner.run(max_steps)


@app.command()
def run(
    max_steps: Optional[int] = typer.Option(
        None, "--max-steps", "-n", min=1, help="Step budget for this run."
    ),
    config_path: Path = _CONFIG_OPTION,
    save_report: bool = typer.Option(
        True, "--save-report/--no-save-report", help="Write the report to reports_dir."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to stderr."),
) -> None:
    """Advance the workflow until it completes or the step budget is spent."""
    try:
        config = resolve_token(load_orchestrator_config(config_path))
    except ConfigurationError as exc:
        _abort_run(exc)
    setup_logging(
        "handover-orchestrator",
        level=config.log_level,
        log_file=config.resolve(config.log_file) if config.log_file else None,
        stream=verbose,
        logger_name="src",
    )
    steps = max_steps or config.max_steps

    try:
        runner = build_runner(config, shutdown=GracefulShutdown())
    except ConfigurationError as exc:
        _abort_run(exc)

    print_handover_header(runner.store.load(), str(config.handover_path))

    exit_code = 0
    try:
        asyncio.run(_run_with_shutdown(runner, steps))
    except (HandlerExecutionError, StateStoreError) as exc:
        print_error_panel(exc)
        exit_code = EXIT_FAILED_STEP
    except ConfigurationError as exc:
        print_error_panel(exc)
        exit_code = EXIT_CONFIGURATION

    report = runner.report
    if report.outcome is None:
        report.finish(RunOutcome.ABORTED)
    print_report(report)
    if save_report:
        path = report.save(config.resolve(config.reports_dir))
        print_message(f"[blue]Report written to {path}[/blue]")
    raise typer.Exit(code=exit_code)


@app.command()
def status(config_path: Path = _CONFIG_OPTION) -> None:
    """Show the handover state and what would run next."""
    config = _load_config(config_path)
    state = FileStateStore(config.handover_path).load()
    print_handover_header(state, str(config.handover_path))
    policy = TransitionPolicy(ArtifactProbe(config.workspace_root), config.preconditions)
    print_next_action(policy.next_action(state))


@app.command()
def init(
    config_path: Path = _CONFIG_OPTION,
    force: bool = typer.Option(False, "--force", help="Overwrite existing files."),
) -> None:
    """Seed the handover record and write a config template."""
    if config_path.exists() and not force:
        print_message(f"[yellow]Config {config_path} exists, keeping it.[/yellow]")
    else:
        atomic_write_text(config_path, _DEFAULT_CONFIG_TEMPLATE)
        print_message(f"[green]Wrote config template to {config_path}[/green]")

    config = _load_config(config_path)
    record = config.handover_path
    if record.exists() and not force:
        print_error_panel(f"Handover record {record} already exists. Use --force to reset it.")
        raise typer.Exit(code=1)
    atomic_write_text(record, _DEFAULT_HANDOVER_TEMPLATE)
    print_message(f"[green]Seeded handover record {record} (PM / Planning)[/green]")
