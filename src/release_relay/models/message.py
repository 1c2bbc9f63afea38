"""Data models for chat messages and their rendered states."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ActionId(StrEnum):
    """Identifiers of every button the relay renders."""

    LOCK_BRANCH = "lock_branch"
    UNLOCK_BRANCH = "unlock_branch"
    START_RELEASE = "start_release"

    # Not implemented yet; answered with a "coming soon" notice
    PRISM_DEVELOP = "prism_develop"
    PRISM_STAGING = "prism_staging"
    PRISM_PRODUCTION = "prism_production"

    # Shown while a workflow is being triggered
    PROCESSING_RELEASE = "processing_release"
    PROCESSING_UNLOCK = "processing_unlock"


PLACEHOLDER_ACTIONS: frozenset[ActionId] = frozenset(
    {ActionId.PRISM_DEVELOP, ActionId.PRISM_STAGING, ActionId.PRISM_PRODUCTION}
)

PROCESSING_ACTIONS: frozenset[ActionId] = frozenset(
    {ActionId.PROCESSING_RELEASE, ActionId.PROCESSING_UNLOCK}
)


class MessageState(StrEnum):
    """Rendered state of the interactive message."""

    IDLE = "idle"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (MessageState.SUCCESS, MessageState.ERROR)


@dataclass(frozen=True)
class RenderedMessage:
    """A message layout ready to post or to write over an existing message."""

    state: MessageState
    text: str  # Notification fallback
    blocks: list[dict[str, Any]] = field(default_factory=list)

    @property
    def action_ids(self) -> list[str]:
        """Action identifiers of all buttons in the layout, in order."""
        return [
            element["action_id"]
            for block in self.blocks
            if block.get("type") == "actions"
            for element in block.get("elements", [])
        ]


class TriggerOutcome(StrEnum):
    """Outcome of handling a single trigger."""

    MENU_POSTED = "menu_posted"
    DENIED = "denied"
    PLACEHOLDER = "placeholder"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class DeliveryResult:
    """Result of a best-effort notification. Callers may ignore it."""

    delivered: bool
    error: str | None = None
