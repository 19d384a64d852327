from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from agentloop.backends.base import CommandBackend, content_text, render_user_prompt


class CodexBackend(CommandBackend):
    """``codex exec --json``; non-JSON lines on stdout are progress noise."""

    name = "codex"

    def __init__(self, binary: str = "codex", working_directory: Path | None = None) -> None:
        super().__init__(binary, working_directory)

    def build_command(
        self,
        system_prompt: str,
        user_prompt: str,
        context: dict[str, Any],
    ) -> list[str]:
        command = [
            self.binary,
            "exec",
            "--json",
            "-c",
            f"instructions={json.dumps(system_prompt, ensure_ascii=False)}",
        ]
        model = context.get("model")
        if isinstance(model, str) and model.strip():
            command.extend(["-m", model.strip()])
        command.append(render_user_prompt(user_prompt, context))
        return command

    def extract_text(self, event: dict[str, Any]) -> str:
        for key in ("content", "delta"):
            text = content_text(event.get(key))
            if text:
                return text

        message = event.get("message")
        if isinstance(message, dict):
            message = message.get("content")
        text = content_text(message)
        if text:
            return text

        item = event.get("item")
        if isinstance(item, dict) and item.get("type") == "agent_message":
            return content_text(item.get("text"))
        return ""
