from __future__ import annotations

from pathlib import Path
from typing import Any

from agentloop.backends.base import CommandBackend, content_text, render_user_prompt


class ClaudeCodeBackend(CommandBackend):
    name = "claude"
    keep_plain_lines = True

    def __init__(self, binary: str = "claude", working_directory: Path | None = None) -> None:
        super().__init__(binary, working_directory)

    def build_command(
        self,
        system_prompt: str,
        user_prompt: str,
        context: dict[str, Any],
    ) -> list[str]:
        command = [
            self.binary,
            "-p",
            render_user_prompt(user_prompt, context),
            "--output-format",
            "stream-json",
            "--verbose",
        ]
        if system_prompt:
            command.extend(["--append-system-prompt", system_prompt])
        model = context.get("model")
        if isinstance(model, str) and model.strip():
            command.extend(["--model", model.strip()])
        return command

    def extract_text(self, event: dict[str, Any]) -> str:
        if event.get("type") == "result":
            # repeats the assistant text already streamed
            return ""
        message = event.get("message")
        body = message if isinstance(message, dict) else event
        return content_text(body.get("content")) or content_text(body.get("delta"))
