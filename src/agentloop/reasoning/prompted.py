from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from agentloop.backends.base import AgentBackend
from agentloop.config import ModelSettings
from agentloop.reasoning.base import (
    ReasoningClient,
    ReasoningServiceError,
    TaskAnalysis,
    TaskContext,
)

logger = logging.getLogger(__name__)

LIST_ITEM_PATTERN = re.compile(r"^(?:[-*]|\d+[.)])\s+(.+)$")

SYSTEM_PROMPT = """
You are an autonomous task execution agent working towards a single goal.
Answer only with what is asked for. Do not add greetings or explanations
about yourself.
""".strip()

START_GOAL_PROMPT = """
You have the following objective: "{goal}".
Create a list of zero to three short tasks to be completed by you such that
the objective is reached. Return the tasks as a JSON array of strings.
""".strip()

ANALYZE_TASK_PROMPT = """
You have the following overall objective: "{goal}".
Your current task is: "{task}".
Think through how this task should be approached before carrying it out.
Respond with your reasoning only; do not perform the task yet.
""".strip()

EXECUTE_TASK_PROMPT = """
You have the following overall objective: "{goal}".
You analyzed your current task as follows:
{reasoning}

Carry the task out now and return its result as plain text.
""".strip()


CREATE_TASKS_PROMPT = """
You have the following overall objective: "{goal}".
You just worked on the task "{current}" and produced this result:
{result}

Remaining tasks: {remaining}
Completed tasks: {completed}

Based on the result, create new tasks only if they are needed to reach the
objective. Return them as a JSON array of strings; return [] when the
objective is reached.
""".strip()


def _strings(values: list[Any]) -> list[str]:
    return [str(value).strip() for value in values if str(value).strip()]


def extract_task_list(content: str) -> list[str]:
    """Parse task inputs from a reply: a JSON array first, then list-style lines."""
    start = content.find("[")
    end = content.rfind("]")
    if start != -1 and end > start:
        try:
            parsed = json.loads(content[start : end + 1])
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return _strings(parsed)

    items: list[str] = []
    for raw_line in content.splitlines():
        match = LIST_ITEM_PATTERN.match(raw_line.strip())
        if match:
            items.append(match.group(1).strip())
    return items


class BackendReasoningClient(ReasoningClient):
    """Reasoning service backed by an agent CLI, one prompt per operation."""

    def __init__(
        self,
        backend: AgentBackend,
        *,
        goal: str,
        model_settings: ModelSettings | Mapping[str, Any] | None = None,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self.backend = backend
        self.goal = goal
        self.model_settings = ModelSettings.from_value(model_settings)
        self.system_prompt = system_prompt

    async def _ask(self, operation: str, user_prompt: str) -> str:
        context = {"goal": self.goal, "operation": operation}
        context.update(self.model_settings.to_context())
        logger.debug("Requesting %s from %s", operation, type(self.backend).__name__)
        return await self.backend.complete(self.system_prompt, user_prompt, context)

    async def get_initial_tasks(self) -> list[str]:
        content = await self._ask("start_goal", START_GOAL_PROMPT.format(goal=self.goal))
        return extract_task_list(content)

    async def analyze_task(self, task_input: str) -> TaskAnalysis:
        content = await self._ask(
            "analyze_task",
            ANALYZE_TASK_PROMPT.format(goal=self.goal, task=task_input),
        )
        if not content:
            raise ReasoningServiceError(
                f"Reasoning service returned no analysis for: {task_input}"
            )
        return TaskAnalysis(reasoning=content)

    async def execute_task(self, task_input: str, analysis: TaskAnalysis) -> str:
        prompt = EXECUTE_TASK_PROMPT.format(goal=self.goal, reasoning=analysis.reasoning)
        if task_input:
            prompt = f"{prompt}\n\nOutput recorded for this task so far:\n{task_input}"
        return await self._ask("execute_task", prompt)

    async def get_additional_tasks(self, context: TaskContext, last_result: str) -> list[str]:
        content = await self._ask(
            "create_tasks",
            CREATE_TASKS_PROMPT.format(
                goal=self.goal,
                current=context.current,
                result=last_result,
                remaining=json.dumps(context.remaining, ensure_ascii=False),
                completed=json.dumps(context.completed, ensure_ascii=False),
            ),
        )
        known = set(context.remaining) | set(context.completed)
        tasks: list[str] = []
        for item in extract_task_list(content):
            if item in known:
                continue
            known.add(item)
            tasks.append(item)
        return tasks
