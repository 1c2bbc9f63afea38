"""Relay orchestrator that wires the adapters and runs until shutdown.

This module implements the Relay class, the main entry point for Release
Relay. It:
- Wires the chat adapter to the interaction controller
- Tracks in-flight triggers and outcome statistics
- Reports unhandled platform errors to the release channel
- Handles graceful shutdown on signals (SIGTERM, SIGINT)
"""

from __future__ import annotations

import asyncio
import signal
from collections import Counter
from typing import TYPE_CHECKING

import structlog

from release_relay.config.schema import RelayConfig
from release_relay.core.controller import InteractionController
from release_relay.core.notifier import Notifier
from release_relay.models.message import TriggerOutcome
from release_relay.utils.logging import LogEventNames

if TYPE_CHECKING:
    from release_relay.interfaces.chat import ChatProvider
    from release_relay.interfaces.workflows import WorkflowProvider
    from release_relay.models.trigger import TriggerEvent

log = structlog.get_logger()


class RelayError(Exception):
    """Base exception for relay errors."""


class StartupError(RelayError):
    """Failed to start the relay."""


class Relay:
    """Main orchestrator that coordinates all components.

    Responsibilities:
    - Register the controller as the chat adapter's trigger handler
    - Contain exceptions escaping a single trigger
    - Report framework-level errors through the Notifier
    - Handle graceful startup and shutdown

    Example:
        relay = Relay(config, chat, workflows)
        await relay.start()  # Blocks until shutdown signal
    """

    DEFAULT_SHUTDOWN_TIMEOUT = 30.0

    def __init__(
        self,
        config: RelayConfig,
        chat: ChatProvider,
        workflows: WorkflowProvider,
    ) -> None:
        """Initialize the Relay.

        Args:
            config: Application configuration
            chat: Chat provider adapter
            workflows: Workflow provider adapter
        """
        self._config = config
        self._chat = chat
        self._workflows = workflows

        self._notifier = Notifier(chat, config.slack.notify_channel)
        self._controller = InteractionController(chat, workflows, self._notifier, config)

        chat.set_trigger_handler(self.process_trigger)
        chat.set_error_handler(self.handle_platform_error)

        self._active_tasks: set[asyncio.Task[object]] = set()
        self._outcomes: Counter[str] = Counter()
        self._errors_count = 0

        self._running = False
        self._shutdown_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        """Return True if the relay is currently running."""
        return self._running

    @property
    def controller(self) -> InteractionController:
        return self._controller

    @property
    def stats(self) -> dict[str, int]:
        """Return processing statistics."""
        return {
            "triggers_processed": sum(self._outcomes.values()),
            "errors_count": self._errors_count,
            "active_tasks": len(self._active_tasks),
            **{f"outcome_{name}": count for name, count in sorted(self._outcomes.items())},
        }

    async def start(self) -> None:
        """Connect to chat and block until shutdown is triggered.

        Raises:
            StartupError: If startup fails
        """
        if self._running:
            log.warning("relay_already_running")
            return

        log.info(
            LogEventNames.RELAY_STARTING,
            repository=self._config.github.full_name,
            workflow=self._config.workflow.workflow_file,
            target_branch=self._config.workflow.target_branch,
            authorized_channel=self._config.slack.authorized_channel,
        )

        try:
            self._shutdown_event = asyncio.Event()

            await self._chat.connect()
            self._setup_signal_handlers()

            self._running = True
            log.info(LogEventNames.RELAY_STARTED)

            await self._shutdown_event.wait()

        except Exception as e:
            log.exception("relay_startup_failed", error=str(e))
            await self._cleanup()
            raise StartupError(f"Failed to start relay: {e}") from e

    async def stop(self) -> None:
        """Gracefully stop the relay.

        Waits for in-flight triggers (with timeout), then disconnects and
        releases the workflow client.
        """
        if not self._running:
            log.warning("relay_not_running")
            return

        log.info(LogEventNames.RELAY_STOPPING, active_tasks=len(self._active_tasks))

        await self._wait_for_tasks()
        await self._cleanup()

        self._running = False
        if self._shutdown_event:
            self._shutdown_event.set()

        log.info(LogEventNames.RELAY_STOPPED, **self.stats)

    async def process_trigger(self, event: TriggerEvent) -> TriggerOutcome:
        """Run one trigger through the controller.

        Exceptions escaping the controller are logged and counted; they
        never reach the chat framework.

        Args:
            event: Inbound trigger

        Returns:
            TriggerOutcome of the trigger, FAILED if the controller raised
        """
        task = asyncio.current_task()
        if task is not None:
            self._active_tasks.add(task)

        try:
            outcome = await self._controller.handle(event)
        except Exception as e:
            log.exception("trigger_processing_error", kind=event.kind.value, error=str(e))
            outcome = TriggerOutcome.FAILED
        finally:
            if task is not None:
                self._active_tasks.discard(task)

        self._outcomes[outcome.value] += 1
        if outcome == TriggerOutcome.FAILED:
            self._errors_count += 1
        return outcome

    async def handle_platform_error(self, error: Exception) -> None:
        """Report an error raised inside the chat framework."""
        self._errors_count += 1
        log.error(LogEventNames.PLATFORM_ERROR, error=str(error))
        await self._notifier.notify(f"❌ An error occurred: {error}")

    async def _wait_for_tasks(self) -> None:
        """Wait for active triggers to complete with timeout."""
        pending_tasks = {task for task in self._active_tasks if task is not asyncio.current_task()}
        if not pending_tasks:
            return

        log.info("waiting_for_active_tasks", count=len(pending_tasks))

        done, pending = await asyncio.wait(
            pending_tasks,
            timeout=self.DEFAULT_SHUTDOWN_TIMEOUT,
        )

        if pending:
            log.warning("cancelling_pending_tasks", count=len(pending))
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        log.info("tasks_completed", completed=len(done), cancelled=len(pending))

    async def _cleanup(self) -> None:
        """Clean up resources."""
        try:
            await self._chat.disconnect()
        except Exception as e:
            log.warning("chat_disconnect_error", error=str(e))

        try:
            await self._workflows.close()
        except Exception as e:
            log.warning("workflow_client_close_error", error=str(e))

        self._active_tasks.clear()

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(
                sig,
                lambda s: asyncio.create_task(self._handle_signal(s)),
                sig,
            )
            log.debug("signal_handler_registered", signal=sig.name)

    async def _handle_signal(self, sig: signal.Signals) -> None:
        log.info("received_signal", signal=sig.name)
        await self.stop()


def create_relay(config: RelayConfig) -> Relay:
    """Factory function to create a Relay with all dependencies.

    Args:
        config: Application configuration

    Returns:
        Configured Relay instance
    """
    # Import here to avoid loading slack-bolt for config-only commands
    from release_relay.adapters.chat.slack import SlackAdapter
    from release_relay.adapters.ci.github_actions import GitHubActionsAdapter

    chat = SlackAdapter(config.slack)
    workflows = GitHubActionsAdapter(config.github)

    return Relay(config, chat, workflows)
