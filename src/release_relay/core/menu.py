"""Block Kit layouts for the release management message.

Every function here is pure: the same arguments always produce an
equal RenderedMessage.
"""

from __future__ import annotations

from typing import Any, Literal

from release_relay.models.message import ActionId, MessageState, RenderedMessage
from release_relay.models.workflow import LockOption

ButtonStyle = Literal["primary", "danger"]

HEADER = "🚀 *Release Management*"
TITLE = "Release Management"

PLACEHOLDER_LABELS: dict[ActionId, str] = {
    ActionId.PRISM_DEVELOP: "Prism Develop",
    ActionId.PRISM_STAGING: "Prism Staging",
    ActionId.PRISM_PRODUCTION: "Prism Production",
}


def _button(
    label: str,
    action_id: ActionId,
    style: ButtonStyle | None = "primary",
) -> dict[str, Any]:
    button: dict[str, Any] = {
        "type": "button",
        "text": {"type": "plain_text", "text": label, "emoji": True},
        "action_id": action_id.value,
    }
    if style:
        button["style"] = style
    return button


def _layout(body: str, buttons: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"{HEADER}\n{body}"},
        },
        {
            "type": "actions",
            "elements": buttons,
        },
    ]


def build_idle_menu(target_branch: str) -> RenderedMessage:
    """Build the initial interactive message posted on mention.

    Args:
        target_branch: Branch the lock/unlock buttons act on.

    Returns:
        Idle layout with lock, unlock and the placeholder buttons.
    """
    buttons = [
        _button("Lock Branch", ActionId.LOCK_BRANCH),
        _button("Unlock Branch", ActionId.UNLOCK_BRANCH),
    ]
    buttons.extend(
        _button(label, action_id, style=None) for action_id, label in PLACEHOLDER_LABELS.items()
    )

    return RenderedMessage(
        state=MessageState.IDLE,
        text=TITLE,
        blocks=_layout(
            f"Click a button below to lock or unlock the {target_branch} branch.",
            buttons,
        ),
    )


def build_processing_message(option: LockOption) -> RenderedMessage:
    """Layout shown while a lock or unlock workflow is being triggered."""
    if option == LockOption.LOCK:
        body = "Locking branch in progress..."
        button = _button("Processing...", ActionId.PROCESSING_RELEASE, "primary")
    else:
        body = "Unlocking branch in progress..."
        button = _button("Processing...", ActionId.PROCESSING_UNLOCK, "danger")

    return RenderedMessage(
        state=MessageState.PROCESSING,
        text=f"{TITLE} - Processing",
        blocks=_layout(body, [button]),
    )


def build_success_message(option: LockOption) -> RenderedMessage:
    """Layout shown after the workflow was triggered, with next actions."""
    if option == LockOption.LOCK:
        body = "Release process completed successfully!"
        buttons = [
            _button("Start Release", ActionId.START_RELEASE),
            _button("Unlock Branch", ActionId.UNLOCK_BRANCH),
        ]
    else:
        body = "Unlock process completed successfully!"
        buttons = [
            _button("Start Release (Lock)", ActionId.START_RELEASE),
            _button("Unlock Branch", ActionId.UNLOCK_BRANCH, "danger"),
        ]

    return RenderedMessage(
        state=MessageState.SUCCESS,
        text=f"{TITLE} - Success",
        blocks=_layout(body, buttons),
    )


def build_error_message(option: LockOption) -> RenderedMessage:
    """Layout shown after a failure. Only retry-capable actions are offered."""
    process = "Release" if option == LockOption.LOCK else "Unlock"

    return RenderedMessage(
        state=MessageState.ERROR,
        text=f"{TITLE} - Error",
        blocks=_layout(
            f"❌ {process} process failed. Please try again.",
            [
                _button("Lock Branch", ActionId.LOCK_BRANCH),
                _button("Unlock Branch", ActionId.UNLOCK_BRANCH, "danger"),
            ],
        ),
    )


def render(state: MessageState, option: LockOption, target_branch: str) -> RenderedMessage:
    """Select the layout for a message state.

    Args:
        state: State to render.
        option: Lock option of the trigger being handled.
        target_branch: Branch named in the idle menu.
    """
    if state == MessageState.IDLE:
        return build_idle_menu(target_branch)
    if state == MessageState.PROCESSING:
        return build_processing_message(option)
    if state == MessageState.SUCCESS:
        return build_success_message(option)
    return build_error_message(option)
