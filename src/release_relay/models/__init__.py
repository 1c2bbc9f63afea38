"""Data models and transfer objects."""

from .message import (
    PLACEHOLDER_ACTIONS,
    PROCESSING_ACTIONS,
    ActionId,
    DeliveryResult,
    MessageState,
    RenderedMessage,
    TriggerOutcome,
)
from .trigger import MessageRef, TriggerEvent, TriggerKind
from .workflow import LockOption, RunReference, WorkflowDispatchResult, WorkflowRequest

__all__ = [
    # Trigger models
    "TriggerKind",
    "MessageRef",
    "TriggerEvent",
    # Message models
    "ActionId",
    "PLACEHOLDER_ACTIONS",
    "PROCESSING_ACTIONS",
    "MessageState",
    "RenderedMessage",
    "TriggerOutcome",
    "DeliveryResult",
    # Workflow models
    "LockOption",
    "WorkflowRequest",
    "WorkflowDispatchResult",
    "RunReference",
]
