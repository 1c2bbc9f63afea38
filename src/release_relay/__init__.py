"""Release Relay: Slack-triggered branch lock/unlock via GitHub Actions."""

from release_relay._version import __version__

__all__ = ["__version__"]
