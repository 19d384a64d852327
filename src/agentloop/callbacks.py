from __future__ import annotations

from agentloop.tasks import Task


class LoopBudgetExceededError(RuntimeError):
    """Raised by LoopBudget once an agent runs more outer iterations than allowed."""

    def __init__(self, max_loops: int) -> None:
        super().__init__(f"Too many loops: budget of {max_loops} exhausted.")
        self.max_loops = max_loops


class LifecycleCallbacks:
    """Observer notified by the loop engine.

    Every hook is a no-op by default. A hook that raises aborts the run and the
    error propagates out of ``AutonomousAgent.run()``.
    """

    def before_loop(self) -> None:
        return None

    def after_loop(self) -> None:
        return None

    def on_task_update(self, task: Task) -> None:
        _ = task

    def on_shutdown(self) -> None:
        return None


class CallbackChain(LifecycleCallbacks):
    def __init__(self, *callbacks: LifecycleCallbacks) -> None:
        self.callbacks = list(callbacks)

    def before_loop(self) -> None:
        for callback in self.callbacks:
            callback.before_loop()

    def after_loop(self) -> None:
        for callback in self.callbacks:
            callback.after_loop()

    def on_task_update(self, task: Task) -> None:
        for callback in self.callbacks:
            callback.on_task_update(task)

    def on_shutdown(self) -> None:
        for callback in self.callbacks:
            callback.on_shutdown()


class LoopBudget(LifecycleCallbacks):
    def __init__(self, max_loops: int) -> None:
        self.max_loops = max_loops
        self.loops = 0

    def before_loop(self) -> None:
        self.loops += 1
        if self.loops > self.max_loops:
            raise LoopBudgetExceededError(self.max_loops)


class TaskBoard(LifecycleCallbacks):
    """Latest snapshot of every task, keyed by id in first-seen order."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    def on_task_update(self, task: Task) -> None:
        self._tasks[task.id] = task.snapshot()

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())
