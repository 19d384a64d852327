from __future__ import annotations

import json
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

BackendName = Literal["codex", "claude"]


@dataclass(slots=True)
class AgentConfig:
    name: str = "AgentGPT"
    max_loops: int = 5


@dataclass(slots=True)
class BackendConfig:
    primary: BackendName = "claude"
    claude_binary: str = "claude"
    codex_binary: str = "codex"


@dataclass(slots=True)
class ModelSettings:
    model_name: str = ""
    temperature: float = 0.9
    max_tokens: int = 400

    @classmethod
    def from_value(cls, value: ModelSettings | Mapping[str, Any] | None) -> ModelSettings:
        if value is None:
            return cls()
        if isinstance(value, ModelSettings):
            return value
        fields = ("model_name", "temperature", "max_tokens")
        return cls(**{key: value[key] for key in fields if key in value})

    def to_context(self) -> dict[str, Any]:
        context: dict[str, Any] = {
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.model_name.strip():
            context["model"] = self.model_name.strip()
        return context


@dataclass(slots=True)
class AgentLoopConfig:
    agent: AgentConfig = field(default_factory=AgentConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    model: ModelSettings = field(default_factory=ModelSettings)

    @classmethod
    def default(cls) -> AgentLoopConfig:
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> AgentLoopConfig:
        return cls(
            agent=AgentConfig(**data.get("agent", {})),
            backend=BackendConfig(**data.get("backend", {})),
            model=ModelSettings(**data.get("model", {})),
        )

    def to_dict(self) -> dict:
        return {
            "agent": {
                "name": self.agent.name,
                "max_loops": self.agent.max_loops,
            },
            "backend": {
                "primary": self.backend.primary,
                "claude_binary": self.backend.claude_binary,
                "codex_binary": self.backend.codex_binary,
            },
            "model": {
                "model_name": self.model.model_name,
                "temperature": self.model.temperature,
                "max_tokens": self.model.max_tokens,
            },
        }


def _toml_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        rendered = f"{value:.3f}".rstrip("0")
        return rendered + "0" if rendered.endswith(".") else rendered
    return json.dumps(str(value), ensure_ascii=False)


def dumps_toml(config: AgentLoopConfig) -> str:
    data = config.to_dict()
    lines: list[str] = []
    for section in ("agent", "backend", "model"):
        lines.append(f"[{section}]")
        for key, value in data[section].items():
            lines.append(f"{key} = {_toml_value(value)}")
        lines.append("")
    return "\n".join(lines).strip() + "\n"


def load_config(path: Path) -> AgentLoopConfig:
    if not path.exists():
        return AgentLoopConfig.default()
    return AgentLoopConfig.from_dict(tomllib.loads(path.read_text(encoding="utf-8")))


def save_config(path: Path, config: AgentLoopConfig) -> None:
    path.write_text(dumps_toml(config), encoding="utf-8")
