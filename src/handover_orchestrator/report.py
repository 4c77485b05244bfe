"""Per-run audit trail: step records, summary, and rendered report."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from src.workflow_shared.models import RunOutcome, StepRecord, StepStatus
from src.workflow_shared.utils import atomic_write_json, atomic_write_text, ensure_dir

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_run_id() -> str:
    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"run-{millis}-{uuid.uuid4().hex[:5]}"


@dataclass
class RunReport:
    """Append-only record of one orchestration run.

    Pure aggregation: it never decides anything about the run.
    """

    run_id: str = field(default_factory=new_run_id)
    max_steps: int = 0
    started_at: str = field(default_factory=_now)
    finished_at: str = ""
    outcome: RunOutcome | None = None
    error: str = ""
    steps: list[StepRecord] = field(default_factory=list)

    def record(self, step: StepRecord) -> None:
        self.steps.append(step)

    def finish(self, outcome: RunOutcome, error: str = "") -> None:
        self.outcome = outcome
        self.error = error
        self.finished_at = _now()

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def succeeded(self) -> int:
        return sum(1 for s in self.steps if s.status == StepStatus.COMPLETED)

    @property
    def failed(self) -> int:
        return sum(1 for s in self.steps if s.status == StepStatus.FAILED)

    @property
    def success_rate(self) -> float:
        if not self.steps:
            return 0.0
        return self.succeeded / self.total_steps * 100

    def summarize(self) -> dict[str, Any]:
        """Return totals and the outcome (``running`` until finished)."""
        return {
            "total_steps": self.total_steps,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "outcome": self.outcome.value if self.outcome else "running",
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialise the report to a plain dictionary."""
        data = asdict(self)
        data["outcome"] = self.outcome.value if self.outcome else None
        data["steps"] = [
            {**asdict(s), "status": s.status.value} for s in self.steps
        ]
        data["summary"] = self.summarize()
        return data

    def render(self) -> str:
        """Render a human-readable markdown summary."""
        summary = self.summarize()
        lines = [
            "# Workflow Run Report",
            "",
            "## Overview",
            f"- **Run ID:** {self.run_id}",
            f"- **Outcome:** {summary['outcome']}",
            f"- **Started:** {self.started_at}",
            f"- **Finished:** {self.finished_at or '-'}",
            f"- **Step budget:** {self.max_steps}",
        ]
        if self.error:
            lines.append(f"- **Error:** {self.error}")
        lines += ["", "## Steps", ""]
        if self.steps:
            lines.append("| # | Handler | Next Phase | Source | Status | Duration |")
            lines.append("|---|---------|------------|--------|--------|----------|")
            for index, step in enumerate(self.steps, start=1):
                status = step.status.value
                if step.error_message:
                    status = f"{status}: {step.error_message}"
                lines.append(
                    f"| {index} | {step.handler_key} | {step.next_phase} | "
                    f"{step.source_artifact} | {_cell(status)} | "
                    f"{step.duration_ms:.0f} ms |"
                )
        else:
            lines.append("No steps were taken.")
        lines += [
            "",
            "## Metrics",
            f"- **Total Steps:** {summary['total_steps']}",
            f"- **Succeeded:** {summary['succeeded']}",
            f"- **Failed:** {summary['failed']}",
            f"- **Success Rate:** {self.success_rate:.2f}%",
            "",
        ]
        return "\n".join(lines)

    def save(self, directory: Path | str) -> Path:
        """Write ``workflow-<run_id>.json`` and ``.md`` into *directory*.

        Returns:
            The path of the JSON report.
        """
        directory = ensure_dir(directory)
        json_path = directory / f"workflow-{self.run_id}.json"
        atomic_write_json(json_path, self.to_dict())
        atomic_write_text(directory / f"workflow-{self.run_id}.md", self.render())
        logger.info("Workflow report written to %s", json_path)
        return json_path


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")
