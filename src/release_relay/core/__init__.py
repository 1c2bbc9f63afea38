"""Core business logic components.

This module exports the main business logic classes:
- Relay: Main orchestrator that wires adapters and handles lifecycle
- InteractionController: Per-trigger message state machine
- Notifier: Best-effort status notices
- build_idle_menu: The initial interactive message
"""

from release_relay.core.controller import ControllerError, InteractionController
from release_relay.core.menu import build_idle_menu
from release_relay.core.notifier import Notifier
from release_relay.core.relay import Relay, create_relay

__all__ = [
    "ControllerError",
    "InteractionController",
    "Notifier",
    "Relay",
    "build_idle_menu",
    "create_relay",
]
