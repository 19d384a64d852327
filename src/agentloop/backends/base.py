from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class BackendExecutionError(RuntimeError):
    """Raised when a backend process exits with an error."""

    def __init__(
        self,
        message: str,
        *,
        backend: str | None = None,
        exit_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.backend = backend
        self.exit_code = exit_code


class BackendProcessError(BackendExecutionError):
    """Raised when the backend process cannot be started or read."""


def render_user_prompt(user_prompt: str, context: dict[str, Any]) -> str:
    request = {key: value for key, value in context.items() if not key.startswith("_")}
    if not request:
        return user_prompt
    return "\n\n".join(
        [user_prompt, "Context JSON:", json.dumps(request, ensure_ascii=False, indent=2)]
    )


def content_text(value: Any) -> str:
    """Text of a ``content``-like field: a string or a list of ``{"text": ...}`` parts."""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "".join(
            part["text"]
            for part in value
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
    return ""


def _unbalanced(raw: str) -> bool:
    return raw.count("{") > raw.count("}") or raw.count("[") > raw.count("]")


async def _read_all(stream: asyncio.StreamReader | None) -> str:
    if stream is None:
        return ""
    return (await stream.read()).decode("utf-8", errors="replace").strip()


class AgentBackend(ABC):
    @abstractmethod
    async def execute(
        self,
        system_prompt: str,
        user_prompt: str,
        context: dict[str, Any],
    ) -> AsyncIterator[str]:
        """Run one prompt and stream textual chunks."""

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        context: dict[str, Any],
    ) -> str:
        chunks: list[str] = []
        async for chunk in self.execute(system_prompt, user_prompt, context):
            chunks.append(chunk)
        return "".join(chunks).strip()


class CommandBackend(AgentBackend):
    """Runs one CLI process per prompt and reads JSON events from its stdout.

    Subclasses build the command line and pull reply text out of each event.
    Lines that are not JSON are yielded as-is when ``keep_plain_lines`` is set
    and skipped otherwise.
    """

    name = "agent"
    keep_plain_lines = False

    def __init__(self, binary: str, working_directory: Path | None = None) -> None:
        self.binary = binary
        self.working_directory = working_directory

    @abstractmethod
    def build_command(
        self,
        system_prompt: str,
        user_prompt: str,
        context: dict[str, Any],
    ) -> list[str]:
        """Full argv for one prompt."""

    @abstractmethod
    def extract_text(self, event: dict[str, Any]) -> str:
        """Reply text carried by one decoded event, or an empty string."""

    async def execute(
        self,
        system_prompt: str,
        user_prompt: str,
        context: dict[str, Any],
    ) -> AsyncIterator[str]:
        command = self.build_command(system_prompt, user_prompt, context)
        async for item in self._stream_process(command):
            if isinstance(item, dict):
                text = self.extract_text(item)
            elif self.keep_plain_lines:
                text = item
            else:
                logger.debug("%s: skipping non-JSON output %r", self.name, item[:200])
                continue
            if text:
                yield text

    async def _stream_process(self, command: list[str]) -> AsyncIterator[dict[str, Any] | str]:
        label = self.name.capitalize()
        logger.debug("%s: starting %s (%d args)", self.name, command[0], len(command) - 1)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(self.working_directory) if self.working_directory else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise BackendProcessError(
                f"{label} binary not found: {self.binary}", backend=self.name
            ) from exc
        except OSError as exc:
            raise BackendProcessError(
                f"{label} binary could not be started: {exc}", backend=self.name
            ) from exc

        if process.stdout is None:
            raise BackendProcessError(f"{label} backend did not expose stdout.", backend=self.name)

        # stderr is drained concurrently with stdout.
        stderr_reader = asyncio.ensure_future(_read_all(process.stderr))
        try:
            buffer = ""
            async for raw_line in process.stdout:
                line = raw_line.decode("utf-8", errors="replace").strip()
                if not line:
                    continue
                candidate = f"{buffer}{line}"
                try:
                    event = json.loads(candidate)
                except json.JSONDecodeError:
                    if _unbalanced(candidate):
                        buffer = candidate
                    else:
                        buffer = ""
                        yield line
                    continue
                buffer = ""
                if isinstance(event, dict):
                    yield event
            if buffer:
                yield buffer

            return_code = await process.wait()
            stderr_output = await stderr_reader
        finally:
            if not stderr_reader.done():
                stderr_reader.cancel()

        logger.debug("%s: exited with code %s", self.name, return_code)
        if return_code != 0:
            raise BackendExecutionError(
                f"{label} backend failed with exit code {return_code}: {stderr_output}",
                backend=self.name,
                exit_code=return_code,
            )
