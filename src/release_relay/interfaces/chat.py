"""Abstract interface for chat platform integrations."""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from ..models.trigger import TriggerEvent

TriggerHandler = Callable[[TriggerEvent], Awaitable[Any]]
ErrorHandler = Callable[[Exception], Awaitable[Any]]


class ChatProvider(Protocol):
    """Abstract interface for chat platform integrations.

    This protocol defines the contract the relay needs from a chat
    platform: inbound trigger delivery plus three outbound message
    operations.
    """

    def set_trigger_handler(self, handler: TriggerHandler) -> None:
        """
        Register the coroutine that receives every inbound trigger.

        Args:
            handler: Called once per mention or button click
        """
        ...

    def set_error_handler(self, handler: ErrorHandler) -> None:
        """
        Register the coroutine that receives unhandled platform errors.

        Args:
            handler: Called with the exception raised inside the platform framework
        """
        ...

    async def connect(self) -> None:
        """
        Establish connection to the chat platform.

        Raises:
            ConnectionError: If connection fails
        """
        ...

    async def disconnect(self) -> None:
        """
        Gracefully close the connection.
        """
        ...

    async def post_message(
        self,
        channel_id: str,
        text: str,
        blocks: list[dict[str, Any]] | None = None,
    ) -> str:
        """
        Post a new message to a channel.

        Args:
            channel_id: Target channel identifier
            text: Plain text message (fallback for rich formatting)
            blocks: Optional rich content blocks (platform-specific)

        Returns:
            Message ID (timestamp) of the posted message

        Raises:
            SendError: If message delivery fails
        """
        ...

    async def update_message(
        self,
        channel_id: str,
        message_id: str,
        text: str,
        blocks: list[dict[str, Any]] | None = None,
    ) -> None:
        """
        Rewrite an existing message in place.

        Args:
            channel_id: Channel containing the message
            message_id: Target message identifier (timestamp)
            text: New plain text
            blocks: New rich content blocks

        Raises:
            UpdateError: If the rewrite fails
        """
        ...

    async def post_ephemeral(
        self,
        channel_id: str,
        user_id: str,
        text: str,
    ) -> None:
        """
        Post a message visible only to one user.

        Args:
            channel_id: Channel to show the message in
            user_id: The only user who can see the message
            text: Message text

        Raises:
            SendError: If message delivery fails
        """
        ...
