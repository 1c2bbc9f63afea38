"""Best-effort status notices posted to the release channel."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from release_relay.models.message import DeliveryResult
from release_relay.utils.logging import LogEventNames

if TYPE_CHECKING:
    from release_relay.interfaces.chat import ChatProvider

log = structlog.get_logger()


class Notifier:
    """Posts advisory status lines to a fixed channel.

    Notification is never part of the success or failure of the action
    that produced it: failures are logged and reported in the returned
    DeliveryResult, never raised.

    Example:
        notifier = Notifier(chat, channel_id="C0123456789")
        await notifier.notify("🔒 Triggering workflow...")
    """

    def __init__(self, chat: ChatProvider, channel_id: str) -> None:
        self._chat = chat
        self._channel_id = channel_id

    @property
    def channel_id(self) -> str:
        return self._channel_id

    async def notify(self, text: str) -> DeliveryResult:
        """Post a status line.

        Args:
            text: Message text.

        Returns:
            DeliveryResult describing whether the post went through.
        """
        try:
            await self._chat.post_message(channel_id=self._channel_id, text=text)
        except Exception as e:
            log.warning(LogEventNames.NOTIFY_FAILED, channel_id=self._channel_id, error=str(e))
            return DeliveryResult(delivered=False, error=str(e))

        log.debug(LogEventNames.NOTIFY_SENT, channel_id=self._channel_id)
        return DeliveryResult(delivered=True)
