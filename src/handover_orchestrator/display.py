"""Rich-based terminal display layer for orchestration runs.

Uses a module-level :class:`~rich.console.Console` singleton for
consistent output.  Every function is standalone and stateless.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.handover_orchestrator import __version__

# ---------------------------------------------------------------------------
# Module-level Console singleton
# ---------------------------------------------------------------------------

_console = Console()

_OUTCOME_STYLES = {
    "completed": "green",
    "budgetExceeded": "yellow",
    "interrupted": "yellow",
    "failedStep": "red",
    "aborted": "red",
}


# ---------------------------------------------------------------------------
# Display functions
# ---------------------------------------------------------------------------


def print_handover_header(state: Any, record_path: str = "") -> None:
    """Print a panel with the current persona and phase.

    Parameters
    ----------
    state:
        A ``HandoverState`` (or duck-typed object with ``persona``,
        ``phase``).
    record_path:
        Path of the handover record, shown for orientation.
    """
    header = Text()
    header.append("Handover Orchestrator", style="bold white")
    header.append(f" v{__version__}\n", style="dim")
    if record_path:
        header.append("Record: ", style="bold")
        header.append(f"{record_path}\n", style="green")
    header.append("Persona: ", style="bold")
    header.append(f"{_get_attr(state, 'persona', 'UNKNOWN')}\n", style="cyan")
    header.append("Phase: ", style="bold")
    header.append(f"{_get_attr(state, 'phase', 'UNKNOWN')}", style="cyan")

    _console.print(
        Panel(
            header,
            title="[bold]Workflow State[/bold]",
            border_style="blue",
            expand=False,
        )
    )


def print_next_action(action: Any) -> None:
    """Print the action the policy would take next, or that none remains."""
    if action is None:
        _console.print("[green]No pending actions -- workflow complete or not started.[/green]")
        return

    table = Table(title="Next Action", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Handler", _get_attr(action, "handler_key", ""))
    table.add_row("Next Phase", _get_attr(action, "next_phase", ""))
    table.add_row("Source", _get_attr(action, "source_artifact", ""))
    table.add_row("Prompt", _get_attr(action, "prompt", ""))
    _console.print(table)


def print_report(report: Any) -> None:
    """Print the rendered run report and an outcome banner."""
    _console.print(Markdown(report.render()))
    outcome = report.summarize()["outcome"]
    style = _OUTCOME_STYLES.get(outcome, "dim")
    _console.print(
        Panel(
            Text(f"Outcome: {outcome}", style=f"bold {style}"),
            border_style=style,
            expand=False,
        )
    )


def print_error_panel(error: str | Exception) -> None:
    """Print an error message in a red Rich panel.

    Parameters
    ----------
    error:
        Error message string or Exception instance.
    """
    _console.print(
        Panel(
            Text(str(error), style="bold white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            expand=False,
        )
    )


def print_message(message: str) -> None:
    _console.print(message)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_attr(obj: Any, name: str, default: Any = None) -> Any:
    """Get attribute from object or dict, with fallback to default."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)
