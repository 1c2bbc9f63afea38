"""Slack chat adapter using slack-bolt.

This module implements the ChatProvider protocol for Slack using the
slack-bolt library with Socket Mode for real-time events.

Features:
- Socket Mode connection, no public HTTP endpoint required
- Mentions and button clicks translated into TriggerEvents
- Message post, in-place update and ephemeral notices
- Framework errors routed to a single error handler
"""

from __future__ import annotations

from typing import Any

import structlog
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.app.async_app import AsyncApp
from slack_bolt.context.ack.async_ack import AsyncAck
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from ...config.schema import SlackConfig
from ...interfaces.chat import ErrorHandler, TriggerHandler
from ...models.message import ActionId
from ...models.trigger import MessageRef, TriggerEvent, TriggerKind
from ...utils.logging import LogEventNames

log = structlog.get_logger()


class SlackAdapterError(Exception):
    """Base exception for Slack adapter errors."""


class ConnectionError(SlackAdapterError):
    """Raised when connection to Slack fails."""


class SendError(SlackAdapterError):
    """Raised when sending a message fails."""


class UpdateError(SlackAdapterError):
    """Raised when rewriting a message fails."""


class SlackAdapter:
    """Slack chat adapter implementing the ChatProvider protocol.

    Example:
        adapter = SlackAdapter(config)
        adapter.set_trigger_handler(controller.handle)
        await adapter.connect()
    """

    def __init__(self, config: SlackConfig) -> None:
        """Initialize the Slack adapter.

        Args:
            config: Slack-specific configuration.
        """
        self._config = config
        self._connected = False

        self._app = AsyncApp(
            token=config.bot_token,
            signing_secret=config.signing_secret,
        )
        self._client: AsyncWebClient = self._app.client
        self._socket_handler: AsyncSocketModeHandler | None = None

        self._trigger_handler: TriggerHandler | None = None
        self._error_handler: ErrorHandler | None = None

        self._register_handlers()

    def set_trigger_handler(self, handler: TriggerHandler) -> None:
        self._trigger_handler = handler

    def set_error_handler(self, handler: ErrorHandler) -> None:
        self._error_handler = handler

    def _register_handlers(self) -> None:
        """Register event, action and error handlers with the Slack app."""

        @self._app.event("app_mention")
        async def handle_mention(event: dict[str, Any]) -> None:
            """Handle mentions of the bot."""
            await self._process_mention_event(event)

        for action_id in ActionId:
            self._app.action(action_id.value)(self._process_action)

        @self._app.error
        async def handle_error(error: Exception) -> None:
            """Handle errors raised inside bolt listeners."""
            await self._process_error(error)

    async def _emit(self, trigger: TriggerEvent) -> None:
        if self._trigger_handler is None:
            log.warning("trigger_dropped_no_handler", kind=trigger.kind.value)
            return
        await self._trigger_handler(trigger)

    async def _process_mention_event(self, event: dict[str, Any]) -> None:
        """Translate an app_mention event into a trigger.

        Args:
            event: The Slack app_mention event.
        """
        trigger = TriggerEvent(
            kind=TriggerKind.MENTION,
            channel_id=event.get("channel", ""),
            user_id=event.get("user", ""),
            raw_event=event,
        )
        log.debug("mention_received", channel_id=trigger.channel_id, user_id=trigger.user_id)
        await self._emit(trigger)

    async def _process_action(self, ack: AsyncAck, body: dict[str, Any]) -> None:
        """Translate a block_actions payload into a trigger.

        The ack is handed to the trigger; the controller calls it before
        any other work.

        Args:
            ack: Bolt acknowledgment function.
            body: The block_actions request body.
        """
        actions: list[dict[str, Any]] = body.get("actions") or [{}]
        raw_action_id = actions[0].get("action_id", "")
        channel_id = body.get("channel", {}).get("id", "")
        message_ts = body.get("message", {}).get("ts", "")

        try:
            action_id = ActionId(raw_action_id)
        except ValueError:
            log.warning("unknown_action_ignored", action_id=raw_action_id)
            await ack()
            return

        trigger = TriggerEvent(
            kind=TriggerKind.BUTTON_CLICK,
            channel_id=channel_id,
            user_id=body.get("user", {}).get("id", ""),
            action_id=action_id,
            message=MessageRef(channel_id=channel_id, ts=message_ts) if message_ts else None,
            ack=ack,
            raw_event=body,
        )
        log.debug(
            "action_received",
            action_id=action_id.value,
            channel_id=channel_id,
            message_ts=message_ts,
        )
        await self._emit(trigger)

    async def _process_error(self, error: Exception) -> None:
        log.error(LogEventNames.PLATFORM_ERROR, error=str(error), error_type=type(error).__name__)
        if self._error_handler is not None:
            await self._error_handler(error)

    async def connect(self) -> None:
        """Establish connection to Slack using Socket Mode.

        Raises:
            ConnectionError: If connection fails.
        """
        if self._connected:
            return

        try:
            self._socket_handler = AsyncSocketModeHandler(
                app=self._app,
                app_token=self._config.app_token,
            )

            await self._socket_handler.connect_async()  # type: ignore[no-untyped-call]

            self._connected = True
            log.info(
                LogEventNames.CHAT_CONNECTED,
                authorized_channel=self._config.authorized_channel,
            )

        except Exception as e:
            log.error("slack_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Slack: {e}") from e

    async def disconnect(self) -> None:
        """Gracefully close the Slack connection."""
        if not self._connected:
            return

        if self._socket_handler:
            try:
                await self._socket_handler.close_async()  # type: ignore[no-untyped-call]
            except Exception as e:
                log.warning("disconnect_error", error=str(e))

        self._connected = False
        log.info(LogEventNames.CHAT_DISCONNECTED)

    async def post_message(
        self,
        channel_id: str,
        text: str,
        blocks: list[dict[str, Any]] | None = None,
    ) -> str:
        """Post a message to a channel.

        Args:
            channel_id: Target channel identifier.
            text: Plain text message (fallback for rich formatting).
            blocks: Optional Block Kit blocks.

        Returns:
            Message ID (ts) of the posted message.

        Raises:
            SendError: If message delivery fails.
        """
        kwargs: dict[str, Any] = {
            "channel": channel_id,
            "text": text,
        }
        if blocks:
            kwargs["blocks"] = blocks

        try:
            result = await self._client.chat_postMessage(**kwargs)
        except SlackApiError as e:
            log.error("post_message_failed", channel_id=channel_id, error=str(e))
            raise SendError(f"Failed to send message: {e}") from e

        message_ts: str = result.get("ts", "")
        log.debug("message_sent", channel_id=channel_id, message_ts=message_ts)
        return message_ts

    async def update_message(
        self,
        channel_id: str,
        message_id: str,
        text: str,
        blocks: list[dict[str, Any]] | None = None,
    ) -> None:
        """Rewrite a message in place.

        Args:
            channel_id: Channel containing the message.
            message_id: Target message identifier (ts).
            text: New plain text.
            blocks: New Block Kit blocks.

        Raises:
            UpdateError: If the update fails.
        """
        kwargs: dict[str, Any] = {
            "channel": channel_id,
            "ts": message_id,
            "text": text,
        }
        if blocks is not None:
            kwargs["blocks"] = blocks

        try:
            await self._client.chat_update(**kwargs)
        except SlackApiError as e:
            log.error(
                "update_message_failed",
                channel_id=channel_id,
                message_ts=message_id,
                error=str(e),
            )
            raise UpdateError(f"Failed to update message: {e}") from e

        log.debug("message_updated", channel_id=channel_id, message_ts=message_id)

    async def post_ephemeral(
        self,
        channel_id: str,
        user_id: str,
        text: str,
    ) -> None:
        """Post a message only one user can see.

        Args:
            channel_id: Channel to show the message in.
            user_id: Recipient user ID.
            text: Message text.

        Raises:
            SendError: If delivery fails.
        """
        try:
            await self._client.chat_postEphemeral(
                channel=channel_id,
                user=user_id,
                text=text,
            )
        except SlackApiError as e:
            log.error(
                "post_ephemeral_failed",
                channel_id=channel_id,
                user_id=user_id,
                error=str(e),
            )
            raise SendError(f"Failed to send ephemeral message: {e}") from e

        log.debug("ephemeral_sent", channel_id=channel_id, user_id=user_id)
