"""Protocol definitions for pluggable adapters."""

from .chat import ChatProvider, ErrorHandler, TriggerHandler
from .workflows import WorkflowProvider

__all__ = ["ChatProvider", "ErrorHandler", "TriggerHandler", "WorkflowProvider"]
