from agentloop.reasoning.base import (
    ReasoningClient,
    ReasoningClientFactory,
    ReasoningServiceError,
    TaskAnalysis,
    TaskContext,
)
from agentloop.reasoning.prompted import BackendReasoningClient, extract_task_list

__all__ = [
    "BackendReasoningClient",
    "ReasoningClient",
    "ReasoningClientFactory",
    "ReasoningServiceError",
    "TaskAnalysis",
    "TaskContext",
    "extract_task_list",
]
