import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest

from agentloop.backends.base import AgentBackend
from agentloop.config import ModelSettings
from agentloop.reasoning import (
    BackendReasoningClient,
    ReasoningServiceError,
    TaskAnalysis,
    TaskContext,
    extract_task_list,
)


class FakeBackend(AgentBackend):
    def __init__(self, replies: dict[str, str]) -> None:
        self.replies = replies
        self.calls: list[dict[str, Any]] = []

    async def execute(
        self,
        system_prompt: str,
        user_prompt: str,
        context: dict[str, Any],
    ) -> AsyncIterator[str]:
        self.calls.append(
            {"system_prompt": system_prompt, "user_prompt": user_prompt, "context": context}
        )
        reply = self.replies.get(context["operation"], "")
        for index in range(0, len(reply), 7):
            yield reply[index : index + 7]


def test_extract_task_list_prefers_json_array() -> None:
    content = 'Here you go:\n["Find sources", "  ", "Write summary"]\nThanks'
    assert extract_task_list(content) == ["Find sources", "Write summary"]


def test_extract_task_list_falls_back_to_list_lines() -> None:
    content = "Tasks:\n1. Find sources\n- Write summary\n* Review\nplain sentence"
    assert extract_task_list(content) == ["Find sources", "Write summary", "Review"]


def test_extract_task_list_handles_invalid_json_and_empty_reply() -> None:
    assert extract_task_list("[not json\n2) Draft outline") == ["Draft outline"]
    assert extract_task_list("The objective is complete.") == []
    assert extract_task_list("[]") == []


def test_initial_tasks_use_goal_and_model_settings() -> None:
    backend = FakeBackend({"start_goal": '["Research market", "Draft plan"]'})
    client = BackendReasoningClient(
        backend,
        goal="Launch a bakery",
        model_settings={"model_name": "gpt-test", "temperature": 0.3, "unknown": True},
    )

    tasks = asyncio.run(client.get_initial_tasks())

    assert tasks == ["Research market", "Draft plan"]
    call = backend.calls[0]
    assert "Launch a bakery" in call["user_prompt"]
    assert call["context"]["model"] == "gpt-test"
    assert call["context"]["temperature"] == 0.3
    assert call["context"]["max_tokens"] == 400
    assert call["context"]["goal"] == "Launch a bakery"


def test_analyze_and_execute_round() -> None:
    backend = FakeBackend(
        {"analyze_task": "Look at local competitors first.", "execute_task": "Three competitors."}
    )
    client = BackendReasoningClient(backend, goal="Launch a bakery", model_settings=ModelSettings())

    analysis = asyncio.run(client.analyze_task("Research market"))
    result = asyncio.run(client.execute_task("", analysis))

    assert analysis == TaskAnalysis(reasoning="Look at local competitors first.")
    assert result == "Three competitors."
    assert "Research market" in backend.calls[0]["user_prompt"]
    assert "Look at local competitors first." in backend.calls[1]["user_prompt"]
    assert "Output recorded" not in backend.calls[1]["user_prompt"]
    assert "model" not in backend.calls[0]["context"]


def test_empty_analysis_is_rejected() -> None:
    client = BackendReasoningClient(FakeBackend({}), goal="Launch a bakery")

    with pytest.raises(ReasoningServiceError):
        asyncio.run(client.analyze_task("Research market"))


def test_additional_tasks_skip_known_inputs() -> None:
    backend = FakeBackend(
        {"create_tasks": '["Draft plan", "Find a location", "Research market", "Find a location"]'}
    )
    client = BackendReasoningClient(backend, goal="Launch a bakery")
    context = TaskContext(
        current="Research market",
        remaining=["Draft plan"],
        completed=["Research market"],
    )

    tasks = asyncio.run(client.get_additional_tasks(context, "Three competitors."))

    assert tasks == ["Find a location"]
    prompt = backend.calls[0]["user_prompt"]
    assert "Three competitors." in prompt
    assert '["Draft plan"]' in prompt
