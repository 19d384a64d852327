import pytest

from agentloop.callbacks import (
    CallbackChain,
    LifecycleCallbacks,
    LoopBudget,
    LoopBudgetExceededError,
    TaskBoard,
)
from agentloop.tasks import Task


class CountingCallbacks(LifecycleCallbacks):
    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log

    def before_loop(self) -> None:
        self.log.append(f"{self.name}:before")

    def after_loop(self) -> None:
        self.log.append(f"{self.name}:after")

    def on_task_update(self, task: Task) -> None:
        self.log.append(f"{self.name}:task:{task.id}")

    def on_shutdown(self) -> None:
        self.log.append(f"{self.name}:shutdown")


def test_base_callbacks_are_no_ops() -> None:
    callbacks = LifecycleCallbacks()
    callbacks.before_loop()
    callbacks.after_loop()
    callbacks.on_task_update(Task(id="1", input="x"))
    callbacks.on_shutdown()


def test_chain_fans_out_in_order() -> None:
    log: list[str] = []
    chain = CallbackChain(CountingCallbacks("a", log), CountingCallbacks("b", log))

    chain.before_loop()
    chain.on_task_update(Task(id="3", input="x"))
    chain.after_loop()
    chain.on_shutdown()

    assert log == [
        "a:before",
        "b:before",
        "a:task:3",
        "b:task:3",
        "a:after",
        "b:after",
        "a:shutdown",
        "b:shutdown",
    ]


def test_chain_stops_at_first_raising_callback() -> None:
    log: list[str] = []
    chain = CallbackChain(LoopBudget(0), CountingCallbacks("late", log))

    with pytest.raises(LoopBudgetExceededError):
        chain.before_loop()
    assert log == []


def test_loop_budget_allows_configured_iterations() -> None:
    budget = LoopBudget(5)
    for _ in range(5):
        budget.before_loop()

    with pytest.raises(LoopBudgetExceededError) as excinfo:
        budget.before_loop()
    assert excinfo.value.max_loops == 5
    assert "Too many loops" in str(excinfo.value)


def test_task_board_keeps_latest_snapshot_per_id() -> None:
    board = TaskBoard()
    task = Task(id="1", input="draft")
    board.on_task_update(task)
    board.on_task_update(Task(id="2", input="review"))
    task.status = "running"
    board.on_task_update(task)
    task.status = "finished"

    assert [item.id for item in board.tasks] == ["1", "2"]
    assert board.tasks[0].status == "running"
