from agentloop.callbacks import (
    CallbackChain,
    LifecycleCallbacks,
    LoopBudget,
    LoopBudgetExceededError,
    TaskBoard,
)
from agentloop.engine import AutonomousAgent
from agentloop.tasks import Task, TaskQueue, TaskQueueError, TaskStateError

__version__ = "0.1.0"

__all__ = [
    "AutonomousAgent",
    "CallbackChain",
    "LifecycleCallbacks",
    "LoopBudget",
    "LoopBudgetExceededError",
    "Task",
    "TaskBoard",
    "TaskQueue",
    "TaskQueueError",
    "TaskStateError",
    "__version__",
]
