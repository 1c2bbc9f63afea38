"""Tests for the InteractionController state machine."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from release_relay.adapters.chat.slack import SendError, UpdateError
from release_relay.adapters.ci.github_actions import DispatchError
from release_relay.config.schema import RelayConfig, WorkflowConfig
from release_relay.core.controller import InteractionController
from release_relay.core.notifier import Notifier
from release_relay.models.message import ActionId, TriggerOutcome
from release_relay.models.workflow import LockOption, RunReference, WorkflowRequest


@pytest.fixture
def controller(
    mock_chat: AsyncMock,
    mock_workflows: AsyncMock,
    relay_config: RelayConfig,
) -> InteractionController:
    """Create a controller wired to mock providers and a real Notifier."""
    notifier = Notifier(mock_chat, relay_config.slack.notify_channel)
    return InteractionController(mock_chat, mock_workflows, notifier, relay_config)


def observed_states(chat: AsyncMock) -> list[str]:
    """States written over the triggering message, in order."""
    return [
        call.kwargs["text"].rsplit(" - ", 1)[-1] for call in chat.update_message.call_args_list
    ]


def last_action_ids(chat: AsyncMock) -> list[str]:
    blocks: list[dict[str, Any]] = chat.update_message.call_args.kwargs["blocks"]
    return [element["action_id"] for element in blocks[1]["elements"]]


def notices(chat: AsyncMock, channel_id: str) -> list[str]:
    """Texts posted to the notify channel."""
    return [
        call.kwargs["text"]
        for call in chat.post_message.call_args_list
        if call.kwargs["channel_id"] == channel_id
    ]


class TestAuthorization:
    """Triggers from other channels are denied without touching the message."""

    async def test_click_in_other_channel_is_denied(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        make_click,
    ) -> None:
        ack = AsyncMock()
        event = make_click(ActionId.LOCK_BRANCH, channel_id="C0ELSEWHERE", ack=ack)

        outcome = await controller.handle(event)

        assert outcome == TriggerOutcome.DENIED
        ack.assert_awaited_once()
        mock_chat.update_message.assert_not_called()
        mock_chat.post_ephemeral.assert_awaited_once()
        assert mock_chat.post_ephemeral.call_args.kwargs["user_id"] == event.user_id
        mock_workflows.dispatch.assert_not_called()

    async def test_mention_in_other_channel_is_denied(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        make_mention,
    ) -> None:
        outcome = await controller.handle(make_mention(channel_id="C0ELSEWHERE"))

        assert outcome == TriggerOutcome.DENIED
        mock_chat.post_message.assert_not_called()
        mock_chat.update_message.assert_not_called()
        mock_chat.post_ephemeral.assert_awaited_once()

    async def test_denial_names_authorized_channel(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        relay_config: RelayConfig,
        make_click,
    ) -> None:
        await controller.handle(make_click(ActionId.UNLOCK_BRANCH, channel_id="C0ELSEWHERE"))

        text = mock_chat.post_ephemeral.call_args.kwargs["text"]
        assert relay_config.slack.authorized_channel in text

    async def test_failed_denial_notice_is_contained(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        make_click,
    ) -> None:
        mock_chat.post_ephemeral.side_effect = SendError("channel_not_found")

        outcome = await controller.handle(make_click(ActionId.LOCK_BRANCH, channel_id="C0X"))

        assert outcome == TriggerOutcome.DENIED


class TestMention:
    """Mentions in the authorized channel post the idle menu."""

    async def test_mention_posts_menu_with_five_actions(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        relay_config: RelayConfig,
        make_mention,
    ) -> None:
        outcome = await controller.handle(make_mention())

        assert outcome == TriggerOutcome.MENU_POSTED
        mock_chat.post_message.assert_awaited_once()
        kwargs = mock_chat.post_message.call_args.kwargs
        assert kwargs["channel_id"] == relay_config.slack.authorized_channel
        action_ids = [e["action_id"] for e in kwargs["blocks"][1]["elements"]]
        assert action_ids == [
            "lock_branch",
            "unlock_branch",
            "prism_develop",
            "prism_staging",
            "prism_production",
        ]

    async def test_menu_post_failure_notifies(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        relay_config: RelayConfig,
        make_mention,
    ) -> None:
        mock_chat.post_message.side_effect = [SendError("not_in_channel"), "1.0"]

        outcome = await controller.handle(make_mention())

        assert outcome == TriggerOutcome.FAILED
        assert notices(mock_chat, relay_config.slack.notify_channel) == [
            "❌ Error showing release options."
        ]


class TestLockFlow:
    """Lock trigger: Idle -> Processing -> Success."""

    async def test_lock_success_sequence(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        make_click,
    ) -> None:
        outcome = await controller.handle(make_click(ActionId.LOCK_BRANCH))

        assert outcome == TriggerOutcome.SUCCEEDED
        assert observed_states(mock_chat) == ["Processing", "Success"]
        assert last_action_ids(mock_chat) == ["start_release", "unlock_branch"]

    async def test_lock_dispatches_lock_request(
        self,
        controller: InteractionController,
        mock_workflows: AsyncMock,
        make_click,
    ) -> None:
        await controller.handle(make_click(ActionId.LOCK_BRANCH))

        mock_workflows.dispatch.assert_awaited_once_with(
            WorkflowRequest(
                workflow_file="change-branch-lock-status.yml",
                ref="master",
                lock_option=LockOption.LOCK,
                target_branch="develop/subscriptions",
            )
        )
        mock_workflows.latest_run_reference.assert_awaited_once_with(
            "change-branch-lock-status.yml"
        )

    async def test_ack_precedes_rewrite(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        make_click,
    ) -> None:
        order: list[str] = []
        ack = AsyncMock(side_effect=lambda: order.append("ack"))
        mock_chat.update_message.side_effect = lambda **_: order.append("update")

        await controller.handle(make_click(ActionId.LOCK_BRANCH, ack=ack))

        assert order[0] == "ack"
        assert order.count("ack") == 1

    async def test_processing_rendering_for_lock(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        make_click,
    ) -> None:
        await controller.handle(make_click(ActionId.LOCK_BRANCH))

        first = mock_chat.update_message.call_args_list[0].kwargs
        button = first["blocks"][1]["elements"][0]
        assert button["action_id"] == "processing_release"
        assert button["style"] == "primary"
        assert "Locking branch in progress" in first["blocks"][0]["text"]["text"]

    async def test_notices_before_and_after_dispatch(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        relay_config: RelayConfig,
        make_click,
    ) -> None:
        await controller.handle(make_click(ActionId.LOCK_BRANCH))

        assert notices(mock_chat, relay_config.slack.notify_channel) == [
            "🔒 Triggering workflow to lock develop/subscriptions branch...",
            "✅ Workflow triggered successfully!",
        ]

    async def test_run_url_included_when_found(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        relay_config: RelayConfig,
        make_click,
    ) -> None:
        url = "https://github.com/acme/billing/actions/runs/42"
        mock_workflows.latest_run_reference.return_value = RunReference(url=url)

        await controller.handle(make_click(ActionId.LOCK_BRANCH))

        final_notice = notices(mock_chat, relay_config.slack.notify_channel)[-1]
        assert final_notice == f"✅ Workflow triggered successfully!\n🔗 Workflow run URL: {url}"

    async def test_lookup_error_does_not_block_success(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        make_click,
    ) -> None:
        mock_workflows.latest_run_reference.side_effect = RuntimeError("boom")

        outcome = await controller.handle(make_click(ActionId.LOCK_BRANCH))

        assert outcome == TriggerOutcome.SUCCEEDED
        assert observed_states(mock_chat) == ["Processing", "Success"]

    async def test_notify_failure_does_not_change_outcome(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        make_click,
    ) -> None:
        mock_chat.post_message.side_effect = SendError("channel_not_found")

        outcome = await controller.handle(make_click(ActionId.LOCK_BRANCH))

        assert outcome == TriggerOutcome.SUCCEEDED
        assert observed_states(mock_chat) == ["Processing", "Success"]

    async def test_start_release_runs_lock_flow(
        self,
        controller: InteractionController,
        mock_workflows: AsyncMock,
        make_click,
    ) -> None:
        outcome = await controller.handle(make_click(ActionId.START_RELEASE))

        assert outcome == TriggerOutcome.SUCCEEDED
        request = mock_workflows.dispatch.call_args.args[0]
        assert request.lock_option == LockOption.LOCK

    async def test_waits_settle_delay_before_lookup(
        self,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        relay_config: RelayConfig,
        make_click,
    ) -> None:
        config = relay_config.model_copy(update={"workflow": WorkflowConfig()})
        controller = InteractionController(
            mock_chat, mock_workflows, Notifier(mock_chat, config.slack.notify_channel), config
        )

        with patch("release_relay.core.controller.asyncio.sleep", new=AsyncMock()) as sleep:
            await controller.handle(make_click(ActionId.LOCK_BRANCH))

        sleep.assert_awaited_once_with(5.0)


class TestUnlockFlow:
    """Unlock trigger: Idle -> Processing -> Success."""

    async def test_unlock_success(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        make_click,
    ) -> None:
        outcome = await controller.handle(make_click(ActionId.UNLOCK_BRANCH))

        assert outcome == TriggerOutcome.SUCCEEDED
        assert observed_states(mock_chat) == ["Processing", "Success"]
        assert mock_workflows.dispatch.call_args.args[0].lock_option == LockOption.UNLOCK

        first_button = mock_chat.update_message.call_args_list[0].kwargs["blocks"][1]["elements"][0]
        assert first_button["action_id"] == "processing_unlock"
        assert first_button["style"] == "danger"

        final_buttons = mock_chat.update_message.call_args.kwargs["blocks"][1]["elements"]
        assert final_buttons[0]["text"]["text"] == "Start Release (Lock)"
        assert final_buttons[1]["action_id"] == "unlock_branch"

    async def test_unlock_announces_start_before_dispatch(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        relay_config: RelayConfig,
        make_click,
    ) -> None:
        await controller.handle(make_click(ActionId.UNLOCK_BRANCH))

        assert notices(mock_chat, relay_config.slack.notify_channel) == [
            "🚀 Starting unlock process...",
            "🔓 Triggering workflow to unlock develop/subscriptions branch...",
            "✅ Workflow triggered successfully!",
        ]


class TestFailures:
    """Failures always end in the Error state."""

    async def test_dispatch_failure_renders_error(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        relay_config: RelayConfig,
        make_click,
    ) -> None:
        mock_workflows.dispatch.side_effect = DispatchError(
            "Workflow dispatch failed with status 422: Unexpected inputs", status_code=422
        )

        outcome = await controller.handle(make_click(ActionId.LOCK_BRANCH))

        assert outcome == TriggerOutcome.FAILED
        assert observed_states(mock_chat) == ["Processing", "Error"]
        assert last_action_ids(mock_chat) == ["lock_branch", "unlock_branch"]
        mock_workflows.latest_run_reference.assert_not_called()

        failures = [
            text
            for text in notices(mock_chat, relay_config.slack.notify_channel)
            if text.startswith("❌")
        ]
        assert failures == [
            "❌ Error during release process: "
            "Workflow dispatch failed with status 422: Unexpected inputs"
        ]

    async def test_unlock_failure_names_unlock_process(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        relay_config: RelayConfig,
        make_click,
    ) -> None:
        mock_workflows.dispatch.side_effect = DispatchError("Failed to reach GitHub")

        await controller.handle(make_click(ActionId.UNLOCK_BRANCH))

        final_text = mock_chat.update_message.call_args.kwargs["blocks"][0]["text"]["text"]
        assert "Unlock process failed" in final_text
        assert (
            "❌ Error during unlock process: Failed to reach GitHub"
            in notices(mock_chat, relay_config.slack.notify_channel)
        )

    async def test_processing_rewrite_failure_renders_error(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        make_click,
    ) -> None:
        mock_chat.update_message.side_effect = [UpdateError("message_not_found"), None]

        outcome = await controller.handle(make_click(ActionId.LOCK_BRANCH))

        assert outcome == TriggerOutcome.FAILED
        assert observed_states(mock_chat) == ["Processing", "Error"]
        mock_workflows.dispatch.assert_not_called()

    async def test_success_rewrite_failure_renders_error(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        make_click,
    ) -> None:
        mock_chat.update_message.side_effect = [None, UpdateError("rate_limited"), None]

        outcome = await controller.handle(make_click(ActionId.UNLOCK_BRANCH))

        assert outcome == TriggerOutcome.FAILED
        assert observed_states(mock_chat) == ["Processing", "Success", "Error"]

    async def test_error_rewrite_failure_is_contained(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        make_click,
    ) -> None:
        mock_workflows.dispatch.side_effect = DispatchError("nope")
        mock_chat.update_message.side_effect = [None, UpdateError("message_not_found")]

        outcome = await controller.handle(make_click(ActionId.LOCK_BRANCH))

        assert outcome == TriggerOutcome.FAILED


class TestCancellation:
    """A trigger cancelled mid-flight still ends in the Error state."""

    @pytest.fixture
    def slow_controller(
        self,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        relay_config: RelayConfig,
    ) -> InteractionController:
        config = relay_config.model_copy(update={"workflow": WorkflowConfig(settle_delay=5.0)})
        notifier = Notifier(mock_chat, config.slack.notify_channel)
        return InteractionController(mock_chat, mock_workflows, notifier, config)

    async def test_cancel_during_settle_delay_renders_error(
        self,
        slow_controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        relay_config: RelayConfig,
        make_click,
    ) -> None:
        task = asyncio.create_task(slow_controller.handle(make_click(ActionId.LOCK_BRANCH)))
        for _ in range(20):
            if mock_workflows.dispatch.await_count:
                break
            await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert observed_states(mock_chat) == ["Processing", "Error"]
        assert last_action_ids(mock_chat) == ["lock_branch", "unlock_branch"]
        assert notices(mock_chat, relay_config.slack.notify_channel)[-1] == (
            "❌ Error during release process: interrupted before completion"
        )
        mock_workflows.latest_run_reference.assert_not_called()

    async def test_cancel_with_failing_rewrite_still_propagates(
        self,
        slow_controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        make_click,
    ) -> None:
        mock_chat.update_message.side_effect = [None, UpdateError("message_not_found")]
        task = asyncio.create_task(slow_controller.handle(make_click(ActionId.UNLOCK_BRANCH)))
        for _ in range(20):
            if mock_workflows.dispatch.await_count:
                break
            await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert observed_states(mock_chat) == ["Processing", "Error"]


class TestNonWorkflowActions:
    """Placeholder and processing buttons never rewrite the message."""

    @pytest.mark.parametrize(
        "action_id",
        [ActionId.PRISM_DEVELOP, ActionId.PRISM_STAGING, ActionId.PRISM_PRODUCTION],
    )
    async def test_placeholder_sends_coming_soon(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        mock_workflows: AsyncMock,
        make_click,
        action_id: ActionId,
    ) -> None:
        ack = AsyncMock()

        outcome = await controller.handle(make_click(action_id, ack=ack))

        assert outcome == TriggerOutcome.PLACEHOLDER
        ack.assert_awaited_once()
        mock_chat.update_message.assert_not_called()
        mock_chat.post_ephemeral.assert_awaited_once()
        assert "coming soon" in mock_chat.post_ephemeral.call_args.kwargs["text"]
        mock_workflows.dispatch.assert_not_called()

    @pytest.mark.parametrize("action_id", [ActionId.PROCESSING_RELEASE, ActionId.PROCESSING_UNLOCK])
    async def test_processing_button_reports_in_progress(
        self,
        controller: InteractionController,
        mock_chat: AsyncMock,
        make_click,
        action_id: ActionId,
    ) -> None:
        outcome = await controller.handle(make_click(action_id))

        assert outcome == TriggerOutcome.IN_PROGRESS
        mock_chat.update_message.assert_not_called()
        mock_chat.post_ephemeral.assert_awaited_once()

    def test_every_action_has_a_handler(self, controller: InteractionController) -> None:
        assert controller.actions == frozenset(ActionId)
