from agentloop.backends.base import (
    AgentBackend,
    BackendExecutionError,
    BackendProcessError,
    CommandBackend,
)
from agentloop.backends.claude import ClaudeCodeBackend
from agentloop.backends.codex import CodexBackend

__all__ = [
    "AgentBackend",
    "BackendExecutionError",
    "BackendProcessError",
    "ClaudeCodeBackend",
    "CommandBackend",
    "CodexBackend",
]
