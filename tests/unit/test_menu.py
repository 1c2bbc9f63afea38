"""Tests for the release management message layouts."""

from release_relay.core import menu
from release_relay.models.message import ActionId, MessageState
from release_relay.models.workflow import LockOption


def button_styles(blocks: list[dict]) -> dict[str, str | None]:
    return {e["action_id"]: e.get("style") for e in blocks[1]["elements"]}


class TestIdleMenu:
    """Tests for the initial menu."""

    def test_has_five_actions_in_order(self) -> None:
        rendered = menu.build_idle_menu("develop/subscriptions")

        assert rendered.state == MessageState.IDLE
        assert rendered.action_ids == [
            ActionId.LOCK_BRANCH,
            ActionId.UNLOCK_BRANCH,
            ActionId.PRISM_DEVELOP,
            ActionId.PRISM_STAGING,
            ActionId.PRISM_PRODUCTION,
        ]

    def test_lock_and_unlock_are_primary(self) -> None:
        styles = button_styles(menu.build_idle_menu("develop/subscriptions").blocks)

        assert styles["lock_branch"] == "primary"
        assert styles["unlock_branch"] == "primary"
        assert styles["prism_develop"] is None

    def test_names_target_branch(self) -> None:
        rendered = menu.build_idle_menu("release/2024")

        body = rendered.blocks[0]["text"]["text"]
        assert body.startswith("🚀 *Release Management*")
        assert "release/2024" in body
        assert rendered.text == "Release Management"

    def test_is_idempotent(self) -> None:
        assert menu.build_idle_menu("develop/subscriptions") == menu.build_idle_menu(
            "develop/subscriptions"
        )


class TestStateLayouts:
    """Tests for the Processing, Success and Error layouts."""

    def test_processing_has_single_button(self) -> None:
        lock = menu.build_processing_message(LockOption.LOCK)
        unlock = menu.build_processing_message(LockOption.UNLOCK)

        assert lock.action_ids == [ActionId.PROCESSING_RELEASE]
        assert unlock.action_ids == [ActionId.PROCESSING_UNLOCK]
        assert button_styles(unlock.blocks)["processing_unlock"] == "danger"
        assert lock.text == "Release Management - Processing"

    def test_success_after_lock(self) -> None:
        rendered = menu.build_success_message(LockOption.LOCK)

        assert rendered.action_ids == [ActionId.START_RELEASE, ActionId.UNLOCK_BRANCH]
        assert "Release process completed successfully!" in rendered.blocks[0]["text"]["text"]

    def test_success_after_unlock(self) -> None:
        rendered = menu.build_success_message(LockOption.UNLOCK)

        labels = [e["text"]["text"] for e in rendered.blocks[1]["elements"]]
        assert labels == ["Start Release (Lock)", "Unlock Branch"]
        assert button_styles(rendered.blocks)["unlock_branch"] == "danger"

    def test_error_offers_retry_actions(self) -> None:
        for option in LockOption:
            rendered = menu.build_error_message(option)
            assert rendered.action_ids == [ActionId.LOCK_BRANCH, ActionId.UNLOCK_BRANCH]

        assert "Unlock process failed" in (
            menu.build_error_message(LockOption.UNLOCK).blocks[0]["text"]["text"]
        )

    def test_render_selects_layout(self) -> None:
        for state in MessageState:
            rendered = menu.render(state, LockOption.LOCK, "develop/subscriptions")
            assert rendered.state == state

    def test_every_rendered_action_is_known(self) -> None:
        known = set(ActionId)
        for state in MessageState:
            for option in LockOption:
                rendered = menu.render(state, option, "develop/subscriptions")
                assert set(rendered.action_ids) <= known
