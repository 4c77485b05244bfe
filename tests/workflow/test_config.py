"""Tests for orchestrator configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from src.handover_orchestrator.config import (
    HandlerConfig,
    OrchestratorConfig,
    load_orchestrator_config,
    resolve_token,
)
from src.handover_orchestrator.exceptions import ConfigurationError
from src.workflow_shared.constants import DEFAULT_PRECONDITIONS


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "orchestrator.yaml"
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


class TestDefaults:
    def test_none_path(self) -> None:
        config = load_orchestrator_config(None)
        assert config.max_steps == 20
        assert config.handover_file == ".github/BMAD_HANDOVER.md"
        assert config.preconditions == DEFAULT_PRECONDITIONS
        assert config.personas == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_orchestrator_config(tmp_path / "nope.yaml") == OrchestratorConfig()

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_orchestrator_config(path) == OrchestratorConfig()

    def test_defaults_not_shared(self) -> None:
        a, b = OrchestratorConfig(), OrchestratorConfig()
        a.preconditions["QA"] = "x"
        assert "QA" not in b.preconditions


class TestLoading:
    def test_top_level_fields(self, tmp_path: Path) -> None:
        path = _write(tmp_path, {"max_steps": 5, "step_delay": 2, "log_level": "DEBUG", "extra": 1})
        config = load_orchestrator_config(path)
        assert config.max_steps == 5
        assert config.step_delay == 2
        assert config.log_level == "DEBUG"

    def test_token_is_never_read_from_file(self, tmp_path: Path) -> None:
        config = load_orchestrator_config(_write(tmp_path, {"token": "leaked"}))
        assert config.token == ""

    def test_preconditions_override_and_remove(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            {"preconditions": {"architect": "docs/spec.md", "PM": None, "qa": "qa.md"}},
        )
        config = load_orchestrator_config(path)
        assert config.preconditions == {"ARCHITECT": "docs/spec.md", "QA": "qa.md"}

    def test_personas(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            {
                "personas": {
                    "PM": {"command": ["agent", "--persona", "pm"], "timeout": 30},
                    "qa": {"command": "run-qa --fast", "cwd": "services"},
                    "devops": None,
                }
            },
        )
        config = load_orchestrator_config(path)
        assert config.personas["pm"] == HandlerConfig(command=["agent", "--persona", "pm"], timeout=30)
        assert config.personas["qa"].command == ["run-qa", "--fast"]
        assert config.personas["qa"].cwd == "services"
        assert config.personas["devops"].command == []

    def test_unknown_persona_kept_for_registry(self, tmp_path: Path) -> None:
        config = load_orchestrator_config(_write(tmp_path, {"personas": {"wizard": {"command": ["x"]}}}))
        assert "wizard" in config.personas


class TestPaths:
    def test_resolve_relative(self) -> None:
        config = OrchestratorConfig(workspace_root="/work")
        assert config.handover_path == Path("/work/.github/BMAD_HANDOVER.md")

    def test_resolve_absolute(self, tmp_path: Path) -> None:
        config = OrchestratorConfig(workspace_root="/work")
        assert config.resolve(str(tmp_path)) == tmp_path


class TestResolveToken:
    def test_reads_named_variable(self) -> None:
        config = resolve_token(OrchestratorConfig(token_env="MY_TOKEN"), {"MY_TOKEN": "s3cret"})
        assert config.token == "s3cret"

    def test_missing_variable(self) -> None:
        assert resolve_token(OrchestratorConfig(), {}).token == ""

    def test_token_hidden_from_repr(self) -> None:
        config = resolve_token(OrchestratorConfig(), {"GITHUB_TOKEN": "s3cret"})
        assert "s3cret" not in repr(config)


class TestInvalidConfig:
    """Malformed files surface as ConfigurationError."""

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("max_steps: [\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_orchestrator_config(path)

    def test_top_level_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- pm\n- qa\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_orchestrator_config(path)

    @pytest.mark.parametrize("value", [0, -3, "ten", True, 2.5])
    def test_bad_max_steps(self, tmp_path: Path, value: object) -> None:
        with pytest.raises(ConfigurationError, match="max_steps"):
            load_orchestrator_config(_write(tmp_path, {"max_steps": value}))

    def test_persona_section_not_a_mapping(self, tmp_path: Path) -> None:
        path = _write(tmp_path, {"personas": {"pm": "claude -p"}})
        with pytest.raises(ConfigurationError, match="personas.pm"):
            load_orchestrator_config(path)

    def test_personas_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="'personas'"):
            load_orchestrator_config(_write(tmp_path, {"personas": ["pm"]}))

    def test_bad_command_type(self, tmp_path: Path) -> None:
        path = _write(tmp_path, {"personas": {"qa": {"command": 42}}})
        with pytest.raises(ConfigurationError, match="command"):
            load_orchestrator_config(path)

    def test_bad_timeout(self, tmp_path: Path) -> None:
        path = _write(tmp_path, {"personas": {"qa": {"command": ["x"], "timeout": 0}}})
        with pytest.raises(ConfigurationError, match="timeout"):
            load_orchestrator_config(path)

    def test_preconditions_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="preconditions"):
            load_orchestrator_config(_write(tmp_path, {"preconditions": "docs/prd.md"}))
