"""Handover record persistence.

The handover record is a human-editable markdown document.  Two markers
carry the workflow state:

* the persona marker ``**[PERSONA]**`` (first occurrence), and
* the phase marker: a ``Current Phase`` line followed by a bolded label
  ``**Phase Label**`` on a later line.

Everything else in the document is opaque and preserved verbatim.  Only
the captured label spans are ever rewritten, so a patch never touches
surrounding whitespace, headers or notes.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable

from src.handover_orchestrator.exceptions import StateStoreError
from src.workflow_shared.constants import UNKNOWN
from src.workflow_shared.models import HandoverState
from src.workflow_shared.utils import atomic_write_text, read_text

logger = logging.getLogger(__name__)

PERSONA_PATTERN = re.compile(r"\*\*\[(.*?)\]\*\*")
PHASE_PATTERN = re.compile(r"Current Phase[^\S\n]*\n\s*\*\*(.*?)\*\*")

_PATTERNS: dict[str, re.Pattern[str]] = {
    "persona": PERSONA_PATTERN,
    "phase": PHASE_PATTERN,
}


def parse_record(raw: str) -> HandoverState:
    """Extract persona and phase from record text.

    Missing markers fall back to ``UNKNOWN``; the text itself is kept.
    """
    persona = PERSONA_PATTERN.search(raw)
    phase = PHASE_PATTERN.search(raw)
    return HandoverState(
        persona=persona.group(1) if persona else UNKNOWN,
        phase=phase.group(1) if phase else UNKNOWN,
        raw=raw,
    )


def _labels(raw: str) -> dict[str, str | None]:
    labels: dict[str, str | None] = {}
    for name, pattern in _PATTERNS.items():
        match = pattern.search(raw)
        labels[name] = match.group(1) if match else None
    return labels


def patch_record(raw: str, updates: Mapping[str, str]) -> str:
    """Rewrite the persona and/or phase labels inside *raw*.

    Each marker is located independently.  A marker that is not present
    is skipped, leaving the record as it was for that field.  After each
    splice the record is parsed again: the new label must read back
    exactly and the other field must be unchanged.

    Args:
        raw: Full record text.
        updates: Field name (``persona`` or ``phase``) to new label.

    Returns:
        The patched text.

    Raises:
        ValueError: If *updates* names an unknown field or a label that
            could not be read back by the same extraction rule.
    """
    for name, value in updates.items():
        pattern = _PATTERNS.get(name)
        if pattern is None:
            raise ValueError(f"Unknown handover field '{name}'")
        if "\n" in value or "**" in value or (name == "persona" and "]" in value):
            raise ValueError(f"Invalid {name} label {value!r}")
        # A bolded phase must never look like a persona marker
        if name == "phase" and PERSONA_PATTERN.search(f"**{value}**"):
            raise ValueError(f"Invalid {name} label {value!r}")
        match = pattern.search(raw)
        if match is None:
            logger.warning("Handover record has no %s marker; skipping update", name)
            continue
        start, end = match.span(1)
        patched = raw[:start] + value + raw[end:]
        before, after = _labels(raw), _labels(patched)
        expected = {**before, name: value}
        if after != expected:
            raise ValueError(f"Invalid {name} label {value!r}: reads back as {after[name]!r}")
        raw = patched
    return raw


@runtime_checkable
class StateStore(Protocol):
    """Load/persist boundary for the handover record."""

    def load(self) -> HandoverState:
        ...

    def persist(
        self, state: HandoverState, updates: Mapping[str, str]
    ) -> HandoverState:
        ...


class FileStateStore:
    """Handover record stored as a markdown file on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> HandoverState:
        """Read the record.  Never raises.

        A missing or unreadable record yields ``UNKNOWN``/``UNKNOWN`` with
        empty ``raw``.
        """
        if not self.path.exists():
            logger.warning("Handover record %s not found", self.path)
            return HandoverState()
        raw = read_text(self.path)
        if raw is None:
            logger.warning("Handover record %s could not be read", self.path)
            return HandoverState()
        state = parse_record(raw)
        if state.is_unknown:
            logger.warning("Handover record %s has no persona marker", self.path)
        return state

    def persist(
        self, state: HandoverState, updates: Mapping[str, str]
    ) -> HandoverState:
        """Patch *state* with *updates* and write it back.

        Returns:
            The state re-parsed from the patched text.

        Raises:
            StateStoreError: If the file cannot be written.
        """
        patched = patch_record(state.raw, updates)
        if patched == state.raw and self.path.exists():
            logger.debug("Handover record %s unchanged", self.path)
            return parse_record(patched)
        if not patched:
            logger.warning("Refusing to write an empty handover record to %s", self.path)
            return parse_record(patched)
        try:
            atomic_write_text(self.path, patched)
        except OSError as exc:
            raise StateStoreError(str(self.path), f"Could not write {self.path}: {exc}") from exc
        logger.info("Handover record updated: %s", dict(updates))
        return parse_record(patched)


class InMemoryStateStore:
    """Handover record kept in memory.  Used for tests and dry runs."""

    def __init__(self, raw: str | None = None) -> None:
        self.raw = raw
        self.writes = 0

    def load(self) -> HandoverState:
        if self.raw is None:
            return HandoverState()
        return parse_record(self.raw)

    def persist(
        self, state: HandoverState, updates: Mapping[str, str]
    ) -> HandoverState:
        self.raw = patch_record(state.raw, updates)
        self.writes += 1
        return parse_record(self.raw)
