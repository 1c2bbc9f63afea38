"""Data models for inbound chat triggers."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .message import ActionId


class TriggerKind(StrEnum):
    """Kind of inbound chat event."""

    MENTION = "mention"
    BUTTON_CLICK = "button_click"


@dataclass(frozen=True)
class MessageRef:
    """Identifies a posted message by channel and timestamp."""

    channel_id: str
    ts: str


@dataclass(frozen=True)
class TriggerEvent:
    """An inbound mention or button click.

    Lives only for the duration of handling one event.
    """

    kind: TriggerKind
    channel_id: str
    user_id: str
    action_id: ActionId | None = None
    message: MessageRef | None = None  # Click events only

    # Platform acknowledgment hook; clicks must call it before other work
    ack: Callable[[], Awaitable[None]] | None = field(default=None, compare=False, repr=False)

    # Platform-specific metadata
    raw_event: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_click(self) -> bool:
        return self.kind == TriggerKind.BUTTON_CLICK
