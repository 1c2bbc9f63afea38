"""Concrete implementations of provider interfaces."""

from .chat.slack import SlackAdapter
from .ci.github_actions import GitHubActionsAdapter

__all__ = [
    "GitHubActionsAdapter",
    "SlackAdapter",
]
