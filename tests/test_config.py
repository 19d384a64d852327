import tomllib
from pathlib import Path

from agentloop import __version__
from agentloop.config import (
    AgentLoopConfig,
    ModelSettings,
    dumps_toml,
    load_config,
    save_config,
)


def test_config_roundtrip(tmp_path: Path) -> None:
    config_path = tmp_path / "agentloop.toml"
    config = AgentLoopConfig.default()
    config.agent.name = "PlannerGPT"
    config.agent.max_loops = 12
    config.backend.primary = "codex"
    config.backend.codex_binary = "/opt/bin/codex"
    config.model.model_name = "gpt-5-codex"
    config.model.temperature = 1.0

    save_config(config_path, config)
    loaded = load_config(config_path)

    assert loaded.agent.name == "PlannerGPT"
    assert loaded.agent.max_loops == 12
    assert loaded.backend.primary == "codex"
    assert loaded.backend.codex_binary == "/opt/bin/codex"
    assert loaded.backend.claude_binary == "claude"
    assert loaded.model.model_name == "gpt-5-codex"
    assert loaded.model.temperature == 1.0
    assert isinstance(loaded.model.temperature, float)
    assert loaded.model.max_tokens == 400


def test_missing_config_file_uses_defaults(tmp_path: Path) -> None:
    loaded = load_config(tmp_path / "absent.toml")

    assert loaded == AgentLoopConfig.default()
    assert loaded.agent.max_loops == 5
    assert loaded.backend.primary == "claude"


def test_toml_dump_contains_all_sections() -> None:
    rendered = dumps_toml(AgentLoopConfig.default())

    assert "[agent]" in rendered
    assert "[backend]" in rendered
    assert "[model]" in rendered
    assert "max_loops = 5" in rendered
    assert "temperature = 0.9" in rendered
    assert tomllib.loads(rendered)["backend"]["primary"] == "claude"


def test_model_settings_from_value() -> None:
    settings = ModelSettings(model_name="m")

    assert ModelSettings.from_value(settings) is settings
    assert ModelSettings.from_value(None) == ModelSettings()
    assert ModelSettings.from_value({"max_tokens": 50, "extra": 1}) == ModelSettings(max_tokens=50)
    assert ModelSettings(model_name="  ").to_context() == {"temperature": 0.9, "max_tokens": 400}


def test_package_version_constant_matches_pyproject() -> None:
    project_root = Path(__file__).resolve().parents[1]
    pyproject = tomllib.loads((project_root / "pyproject.toml").read_text(encoding="utf-8"))

    assert __version__ == pyproject["project"]["version"]
