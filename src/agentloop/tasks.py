from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass, replace
from typing import Any, Literal

TaskStatus = Literal["new", "running", "finished"]

_STATUS_ORDER: dict[str, int] = {"new": 0, "running": 1, "finished": 2}


class TaskQueueError(RuntimeError):
    """Raised when the queue cursor or running-task invariants are broken."""


class TaskStateError(TaskQueueError):
    """Raised on a backward or unknown task status transition."""


@dataclass(slots=True)
class Task:
    id: str
    input: str
    output: str = ""
    status: TaskStatus = "new"

    def snapshot(self) -> Task:
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class TaskQueue:
    """Ordered task records with a single cursor.

    The queue owns id assignment (ids are never reused) and every status
    transition, so the engine only ever asks it to move tasks forward.
    """

    def __init__(self) -> None:
        self._tasks: list[Task] = []
        self._cursor = 0
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks))

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def cursor(self) -> int:
        return self._cursor

    def _next_id(self) -> str:
        self._last_id += 1
        return str(self._last_id)

    def _new_task(self, task_input: str, status: TaskStatus) -> Task:
        if status not in _STATUS_ORDER:
            raise TaskStateError(f"Unknown task status: {status!r}")
        return Task(id=self._next_id(), input=task_input, status=status)

    def append(self, task_input: str, status: TaskStatus = "new") -> Task:
        task = self._new_task(task_input, status)
        self._tasks.append(task)
        return task

    def extend(self, task_inputs: Iterable[str]) -> list[Task]:
        return [self.append(value) for value in task_inputs]

    def insert_after_cursor(self, task_input: str, status: TaskStatus = "new") -> Task:
        self._check_cursor()
        if status == "running":
            self._check_no_running()
        task = self._new_task(task_input, status)
        self._tasks.insert(self._cursor + 1, task)
        return task

    def current(self) -> Task:
        self._check_cursor()
        return self._tasks[self._cursor]

    def advance(self) -> None:
        if self._cursor >= len(self._tasks):
            raise TaskQueueError(
                f"Cannot advance cursor past the end of the queue (cursor={self._cursor})."
            )
        self._cursor += 1

    def start(self, task: Task) -> None:
        self._check_no_running()
        self._transition(task, "running")

    def finish(self, task: Task, output: str) -> None:
        self._transition(task, "finished")
        task.output = output

    def remaining(self) -> list[Task]:
        return [task for task in self._tasks if task.status == "new"]

    def completed(self) -> list[Task]:
        return [task for task in self._tasks if task.status == "finished"]

    def running(self) -> list[Task]:
        return [task for task in self._tasks if task.status == "running"]

    def has_new(self) -> bool:
        return any(task.status == "new" for task in self._tasks)

    def _check_cursor(self) -> None:
        if not 0 <= self._cursor < len(self._tasks):
            raise TaskQueueError(
                f"Cursor {self._cursor} does not reference a task "
                f"(queue length {len(self._tasks)})."
            )

    def _check_no_running(self) -> None:
        running = self.running()
        if running:
            raise TaskQueueError(f"Task {running[0].id} is already running.")

    @staticmethod
    def _transition(task: Task, status: TaskStatus) -> None:
        if status not in _STATUS_ORDER:
            raise TaskStateError(f"Unknown task status: {status!r}")
        if _STATUS_ORDER[status] != _STATUS_ORDER[task.status] + 1:
            raise TaskStateError(
                f"Task {task.id} cannot move from '{task.status}' to '{status}'."
            )
        task.status = status
