from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol


class ReasoningServiceError(RuntimeError):
    """Raised when the reasoning service returns something the loop cannot use."""


@dataclass(slots=True)
class TaskAnalysis:
    reasoning: str


@dataclass(slots=True)
class TaskContext:
    current: str
    remaining: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current,
            "remaining": list(self.remaining),
            "completed": list(self.completed),
        }


class ReasoningClient(ABC):
    @abstractmethod
    async def get_initial_tasks(self) -> list[str]:
        """Seed task inputs for the goal."""

    @abstractmethod
    async def analyze_task(self, task_input: str) -> TaskAnalysis:
        """Reason about a task without producing its final result."""

    @abstractmethod
    async def execute_task(self, task_input: str, analysis: TaskAnalysis) -> str:
        """Produce the final textual output of a task."""

    @abstractmethod
    async def get_additional_tasks(self, context: TaskContext, last_result: str) -> list[str]:
        """Propose follow-up task inputs given the queue and the latest result."""


class ReasoningClientFactory(Protocol):
    def __call__(self, *, goal: str, model_settings: Any) -> ReasoningClient: ...
