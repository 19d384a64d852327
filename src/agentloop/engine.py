from __future__ import annotations

import logging
from typing import Any

from agentloop.callbacks import LifecycleCallbacks
from agentloop.reasoning.base import ReasoningClient, ReasoningClientFactory, TaskContext
from agentloop.tasks import Task, TaskQueue, TaskQueueError

logger = logging.getLogger(__name__)


class AutonomousAgent:
    """Drives one goal through the analyze / execute / expand task loop.

    Each outer iteration consumes the task at the cursor plus the execution
    task spliced in right after it, so the cursor moves two slots per
    iteration. Errors raised by the client or by a callback are not caught:
    they unwind ``run()`` and leave the queue as it was at that point.
    """

    def __init__(
        self,
        name: str,
        goal: str,
        callbacks: LifecycleCallbacks,
        model_settings: Any,
        client_factory: ReasoningClientFactory,
    ) -> None:
        self.name = name
        self.goal = goal
        self.callbacks = callbacks
        self.model_settings = model_settings
        self.queue = TaskQueue()
        self.client: ReasoningClient = client_factory(goal=goal, model_settings=model_settings)

    @property
    def task_queue(self) -> list[Task]:
        return self.queue.tasks

    async def run(self) -> None:
        initial_tasks = await self.client.get_initial_tasks()
        self.queue.extend(initial_tasks)
        logger.info(
            "Agent %s starting goal %r with %d initial task(s)",
            self.name,
            self.goal,
            len(initial_tasks),
        )

        iterations = 0
        while self.queue.has_new():
            await self._step()
            iterations += 1

        logger.info(
            "Agent %s finished after %d iteration(s); %d task(s) in queue",
            self.name,
            iterations,
            len(self.queue),
        )

    def shutdown(self) -> None:
        self.callbacks.on_shutdown()

    def _notify(self, task: Task) -> None:
        self.callbacks.on_task_update(task.snapshot())

    async def _step(self) -> None:
        self.callbacks.before_loop()

        task = self.queue.current()
        if task.status != "new":
            raise TaskQueueError(
                f"Cursor {self.queue.cursor} points at task {task.id} with status '{task.status}'."
            )
        self.queue.start(task)
        self._notify(task)

        logger.debug("Analyzing task %s: %s", task.id, task.input)
        analysis = await self.client.analyze_task(task.input)
        self.queue.finish(task, analysis.reasoning)
        self._notify(task)

        execution = self.queue.insert_after_cursor(task.output, status="running")
        self.queue.advance()
        self._notify(self.queue.current())

        logger.debug("Executing task %s", execution.id)
        result = await self.client.execute_task(self.queue.current().output, analysis)
        self.queue.finish(execution, result)
        self._notify(execution)

        context = TaskContext(
            current=execution.input,
            remaining=[item.input for item in self.queue.remaining()],
            completed=[item.input for item in self.queue.completed()],
        )
        additional = await self.client.get_additional_tasks(context, result)
        added = self.queue.extend(additional)
        if added:
            logger.debug("Queued %d follow-up task(s) after task %s", len(added), execution.id)
        self.queue.advance()

        self.callbacks.after_loop()
