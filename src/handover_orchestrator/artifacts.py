"""Read-only access to precondition artifacts (markdown documents)."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from src.workflow_shared.utils import read_text

logger = logging.getLogger(__name__)

_HEADER = re.compile(r"^(#{1,6})[ \t]+(.*?)(?:[ \t]+#+)?[ \t]*$")
_FENCE = re.compile(r"^\s*(```|~~~)")


class ArtifactProbe:
    """Checks for artifact documents and extracts sections from them.

    Relative paths are resolved against *root*.  Nothing here writes.
    """

    def __init__(self, root: Path | str = ".") -> None:
        self.root = Path(root)

    def resolve(self, path: Path | str) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.root / candidate

    def exists(self, path: Path | str) -> bool:
        return self.resolve(path).is_file()

    def extract_section(self, path: Path | str, title: str) -> str | None:
        """Return the trimmed body of the section headed *title*.

        The header match is case-insensitive and ignores surrounding
        whitespace.  The body runs up to the next header of the same or a
        higher level, or the end of the document.  Lines inside fenced
        code blocks are never treated as headers.

        Returns:
            The section text, or ``None`` if the document or the section
            does not exist.
        """
        content = read_text(self.resolve(path))
        if content is None:
            logger.debug("Artifact %s not readable", path)
            return None
        return extract_section(content, title)


def extract_section(content: str, title: str) -> str | None:
    """Section lookup on already-loaded markdown *content*."""
    wanted = title.strip().casefold()
    level: int | None = None
    body: list[str] = []
    in_fence = False

    for line in content.splitlines():
        if _FENCE.match(line):
            in_fence = not in_fence
        header = None if in_fence else _HEADER.match(line)
        if level is None:
            if header and header.group(2).strip().casefold() == wanted:
                level = len(header.group(1))
            continue
        if header and len(header.group(1)) <= level:
            break
        body.append(line)

    if level is None:
        return None
    return "\n".join(body).strip()
