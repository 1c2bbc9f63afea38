"""Interaction controller: drives a chat message through its states.

This module implements the per-trigger lifecycle:
1. Authorize the trigger by channel
2. Acknowledge button clicks before any other work
3. Rewrite the message to Processing
4. Dispatch the lock/unlock workflow
5. Wait a fixed settling delay, then look up the run URL (best effort)
6. Rewrite the message to Success, or to Error on any failure

A message that leaves Idle always ends in Success or Error.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from functools import partial
from typing import TYPE_CHECKING

import structlog

from release_relay.core import menu
from release_relay.models.message import (
    PLACEHOLDER_ACTIONS,
    PROCESSING_ACTIONS,
    ActionId,
    MessageState,
    TriggerOutcome,
)
from release_relay.models.trigger import MessageRef, TriggerEvent, TriggerKind
from release_relay.models.workflow import LockOption, RunReference, WorkflowRequest
from release_relay.utils.logging import LogEventNames, bind_context, unbind_context

if TYPE_CHECKING:
    from release_relay.config.schema import RelayConfig
    from release_relay.core.notifier import Notifier
    from release_relay.interfaces.chat import ChatProvider
    from release_relay.interfaces.workflows import WorkflowProvider

log = structlog.get_logger()

ActionHandler = Callable[[TriggerEvent], Awaitable[TriggerOutcome]]


class ControllerError(Exception):
    """Raised when the controller is misconfigured."""


class InteractionController:
    """Owns the message state machine for every inbound trigger.

    Action dispatch goes through a single table keyed by ActionId; the
    constructor refuses a table that does not cover every action.

    Example:
        controller = InteractionController(chat, workflows, notifier, config)
        outcome = await controller.handle(event)
    """

    DENIED_TEXT = "⛔ Sorry, release actions are only available in <#{channel}>."
    COMING_SOON_TEXT = "🚧 This feature is coming soon!"
    IN_PROGRESS_TEXT = "⏳ This request is already being processed."
    MENU_ERROR_TEXT = "❌ Error showing release options."
    CANCELLED_TEXT = "❌ Error during {} process: interrupted before completion"

    def __init__(
        self,
        chat: ChatProvider,
        workflows: WorkflowProvider,
        notifier: Notifier,
        config: RelayConfig,
    ) -> None:
        """Initialize the controller.

        Args:
            chat: Chat provider used to rewrite messages and send notices
            workflows: Workflow provider used to dispatch and look up runs
            notifier: Notifier for advisory status lines
            config: Relay configuration

        Raises:
            ControllerError: If an ActionId has no handler
        """
        self._chat = chat
        self._workflows = workflows
        self._notifier = notifier
        self._authorized_channel = config.slack.authorized_channel
        self._workflow_config = config.workflow

        self._actions: dict[ActionId, ActionHandler] = {
            ActionId.LOCK_BRANCH: partial(self._run_workflow, option=LockOption.LOCK),
            ActionId.START_RELEASE: partial(self._run_workflow, option=LockOption.LOCK),
            ActionId.UNLOCK_BRANCH: partial(self._run_workflow, option=LockOption.UNLOCK),
        }
        self._actions.update({action: self._placeholder for action in PLACEHOLDER_ACTIONS})
        self._actions.update({action: self._in_progress for action in PROCESSING_ACTIONS})

        missing = set(ActionId) - set(self._actions)
        if missing:
            raise ControllerError(f"No handler for actions: {sorted(missing)}")

    @property
    def actions(self) -> frozenset[ActionId]:
        """Action identifiers with a registered handler."""
        return frozenset(self._actions)

    def is_authorized(self, event: TriggerEvent) -> bool:
        return event.channel_id == self._authorized_channel

    async def handle(self, event: TriggerEvent) -> TriggerOutcome:
        """Handle one mention or button click.

        Args:
            event: Inbound trigger

        Returns:
            TriggerOutcome describing what happened
        """
        bind_context(
            trigger_kind=event.kind.value,
            action_id=event.action_id.value if event.action_id else None,
            channel_id=event.channel_id,
            user_id=event.user_id,
        )
        start_time = time.time()
        log.info(LogEventNames.TRIGGER_RECEIVED)

        try:
            if not self.is_authorized(event):
                outcome = await self._deny(event)
            elif event.kind == TriggerKind.MENTION:
                outcome = await self._post_menu(event)
            elif event.action_id is None:
                await self._acknowledge(event)
                outcome = TriggerOutcome.IGNORED
            else:
                outcome = await self._actions[event.action_id](event)

            log.info(
                LogEventNames.TRIGGER_COMPLETE,
                outcome=outcome.value,
                duration_seconds=round(time.time() - start_time, 2),
            )
            return outcome
        finally:
            unbind_context("trigger_kind", "action_id", "channel_id", "user_id")

    async def _acknowledge(self, event: TriggerEvent) -> None:
        """Acknowledge a click to the platform. Mentions need no ack."""
        if event.ack is not None:
            await event.ack()

    async def _send_ephemeral(self, event: TriggerEvent, text: str) -> None:
        """Send a private notice to the triggering user (with error handling)."""
        try:
            await self._chat.post_ephemeral(
                channel_id=event.channel_id,
                user_id=event.user_id,
                text=text,
            )
        except Exception as e:
            log.warning("ephemeral_notice_failed", error=str(e))

    async def _deny(self, event: TriggerEvent) -> TriggerOutcome:
        """Reject a trigger from outside the authorized channel."""
        log.info(LogEventNames.TRIGGER_DENIED, authorized_channel=self._authorized_channel)
        if event.is_click:
            await self._acknowledge(event)
        await self._send_ephemeral(event, self.DENIED_TEXT.format(channel=self._authorized_channel))
        return TriggerOutcome.DENIED

    async def _post_menu(self, event: TriggerEvent) -> TriggerOutcome:
        """Post the idle menu in response to a mention."""
        idle = menu.build_idle_menu(self._workflow_config.target_branch)
        try:
            await self._chat.post_message(
                channel_id=event.channel_id,
                text=idle.text,
                blocks=idle.blocks,
            )
        except Exception as e:
            log.error("menu_post_failed", error=str(e))
            await self._notifier.notify(self.MENU_ERROR_TEXT)
            return TriggerOutcome.FAILED
        return TriggerOutcome.MENU_POSTED

    async def _placeholder(self, event: TriggerEvent) -> TriggerOutcome:
        """Answer a not-yet-available action privately."""
        await self._acknowledge(event)
        await self._send_ephemeral(event, self.COMING_SOON_TEXT)
        return TriggerOutcome.PLACEHOLDER

    async def _in_progress(self, event: TriggerEvent) -> TriggerOutcome:
        """Answer a click on the Processing button privately."""
        await self._acknowledge(event)
        await self._send_ephemeral(event, self.IN_PROGRESS_TEXT)
        return TriggerOutcome.IN_PROGRESS

    async def _transition(
        self,
        ref: MessageRef,
        from_state: MessageState,
        to_state: MessageState,
        option: LockOption,
    ) -> None:
        """Rewrite the message to the rendering of a new state."""
        rendered = menu.render(to_state, option, self._workflow_config.target_branch)
        await self._chat.update_message(
            channel_id=ref.channel_id,
            message_id=ref.ts,
            text=rendered.text,
            blocks=rendered.blocks,
        )
        log.info(
            LogEventNames.MESSAGE_STATE_CHANGED,
            message_ts=ref.ts,
            from_state=from_state.value,
            to_state=to_state.value,
        )

    async def _lookup_run(self, workflow_file: str) -> RunReference | None:
        """Look up the run URL. A failure only costs the link."""
        try:
            return await self._workflows.latest_run_reference(workflow_file)
        except Exception as e:
            log.warning(LogEventNames.RUN_LOOKUP_FAILED, workflow=workflow_file, error=str(e))
            return None

    async def _run_workflow(self, event: TriggerEvent, option: LockOption) -> TriggerOutcome:
        """Drive a lock or unlock trigger from Idle to Success or Error."""
        await self._acknowledge(event)

        if event.message is None:
            log.warning("trigger_without_message_ignored")
            return TriggerOutcome.IGNORED

        ref = event.message
        branch = self._workflow_config.target_branch
        process = "release" if option == LockOption.LOCK else "unlock"
        request = WorkflowRequest.for_option(self._workflow_config, option)
        state = MessageState.IDLE

        try:
            await self._transition(ref, state, MessageState.PROCESSING, option)
            state = MessageState.PROCESSING

            if option == LockOption.LOCK:
                await self._notifier.notify(f"🔒 Triggering workflow to lock {branch} branch...")
            else:
                await self._notifier.notify("🚀 Starting unlock process...")
                await self._notifier.notify(
                    f"🔓 Triggering workflow to unlock {branch} branch..."
                )

            await self._workflows.dispatch(request)

            # The runs list lags behind the dispatch
            await asyncio.sleep(self._workflow_config.settle_delay)

            run = await self._lookup_run(request.workflow_file)
            if run is not None:
                await self._notifier.notify(
                    f"✅ Workflow triggered successfully!\n🔗 Workflow run URL: {run.url}"
                )
            else:
                await self._notifier.notify("✅ Workflow triggered successfully!")

            await self._transition(ref, state, MessageState.SUCCESS, option)
            return TriggerOutcome.SUCCEEDED

        except asyncio.CancelledError:
            log.warning(
                LogEventNames.TRIGGER_CANCELLED,
                lock_option=option.value,
                state=state.value,
            )
            # A second cancel must not interrupt the Error rewrite
            await asyncio.shield(
                self._render_failure(ref, state, option, self.CANCELLED_TEXT.format(process))
            )
            raise

        except Exception as e:
            log.exception(LogEventNames.TRIGGER_FAILED, lock_option=option.value, error=str(e))
            await self._render_failure(
                ref, state, option, f"❌ Error during {process} process: {e}"
            )
            return TriggerOutcome.FAILED

    async def _render_failure(
        self,
        ref: MessageRef,
        state: MessageState,
        option: LockOption,
        notice: str,
    ) -> None:
        """Post the failure notice and rewrite the message to Error."""
        await self._notifier.notify(notice)

        try:
            await self._transition(ref, state, MessageState.ERROR, option)
        except Exception as render_error:
            log.error(LogEventNames.ERROR_RENDER_FAILED, error=str(render_error))
