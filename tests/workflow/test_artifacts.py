"""Tests for ArtifactProbe existence checks and section extraction."""

from __future__ import annotations

from pathlib import Path

from src.handover_orchestrator.artifacts import ArtifactProbe, extract_section

DOC = (
    "# PRD\n"
    "\n"
    "## Overview\n"
    "Build auth.\n"
    "\n"
    "## architect prompt\n"
    "Design X\n"
    "\n"
    "### Constraints\n"
    "Use JWT.\n"
    "\n"
    "## Rollout\n"
    "Later.\n"
)


class TestExists:
    """Test ArtifactProbe.exists()."""

    def test_existing_file(self, tmp_path: Path) -> None:
        (tmp_path / "doc.md").write_text("x", encoding="utf-8")
        assert ArtifactProbe(tmp_path).exists("doc.md") is True

    def test_missing_file(self, tmp_path: Path) -> None:
        assert ArtifactProbe(tmp_path).exists("nope.md") is False

    def test_directory_is_not_an_artifact(self, tmp_path: Path) -> None:
        (tmp_path / "docs").mkdir()
        assert ArtifactProbe(tmp_path).exists("docs") is False

    def test_absolute_path_ignores_root(self, tmp_path: Path) -> None:
        doc = tmp_path / "abs.md"
        doc.write_text("x", encoding="utf-8")
        assert ArtifactProbe("/definitely/not/here").exists(doc) is True


class TestExtractSection:
    """Test section extraction rules."""

    def test_case_insensitive_title(self) -> None:
        body = extract_section(DOC, "Architect Prompt")
        assert body is not None
        assert body.startswith("Design X")

    def test_includes_deeper_subsections(self) -> None:
        body = extract_section(DOC, "Architect Prompt")
        assert body == "Design X\n\n### Constraints\nUse JWT."

    def test_stops_at_same_level(self) -> None:
        assert extract_section(DOC, "Overview") == "Build auth."

    def test_stops_at_higher_level(self) -> None:
        doc = "## A\none\n# B\ntwo\n"
        assert extract_section(doc, "A") == "one"

    def test_runs_to_end_of_document(self) -> None:
        assert extract_section(DOC, "Rollout") == "Later."

    def test_missing_section(self) -> None:
        assert extract_section(DOC, "Developer Prompt") is None

    def test_empty_section(self) -> None:
        assert extract_section("## Empty\n\n## Next\nx\n", "Empty") == ""

    def test_title_must_match_whole_header(self) -> None:
        assert extract_section("## Architect Prompt Notes\nx\n", "Architect Prompt") is None

    def test_closing_hashes_ignored(self) -> None:
        assert extract_section("## Architect Prompt ##\nDesign Y\n", "Architect Prompt") == "Design Y"

    def test_fenced_code_is_not_a_header(self) -> None:
        doc = (
            "## Developer Prompt\n"
            "Run this:\n"
            "```bash\n"
            "# not a header\n"
            "## also not\n"
            "```\n"
            "Done.\n"
            "# Appendix\n"
            "x\n"
        )
        assert extract_section(doc, "Developer Prompt") == (
            "Run this:\n```bash\n# not a header\n## also not\n```\nDone."
        )

    def test_probe_reads_file(self, tmp_path: Path) -> None:
        (tmp_path / "prd.md").write_text(DOC, encoding="utf-8")
        assert ArtifactProbe(tmp_path).extract_section("prd.md", "Rollout") == "Later."

    def test_probe_missing_file(self, tmp_path: Path) -> None:
        assert ArtifactProbe(tmp_path).extract_section("prd.md", "Rollout") is None

    def test_probe_does_not_modify_file(self, tmp_path: Path) -> None:
        doc = tmp_path / "prd.md"
        doc.write_text(DOC, encoding="utf-8")
        before = doc.stat().st_mtime_ns
        ArtifactProbe(tmp_path).extract_section("prd.md", "Overview")
        assert doc.read_text(encoding="utf-8") == DOC
        assert doc.stat().st_mtime_ns == before
