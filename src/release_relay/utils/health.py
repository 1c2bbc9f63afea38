"""Health check utilities for verifying the relay's dependencies.

This module provides health check capabilities for Release Relay:
- Check configuration consistency
- Check Slack token formats
- Check GitHub token access to the target repository
- Generate health status reports
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from release_relay.utils.logging import LogEventNames

if TYPE_CHECKING:
    from release_relay.config.schema import RelayConfig

log = structlog.get_logger()


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: str
    latency_ms: float | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class HealthReport:
    """Overall health report."""

    healthy: bool
    status: HealthStatus
    timestamp: datetime
    checks: list[CheckResult]
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "healthy": self.healthy,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "checks": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "latency_ms": c.latency_ms,
                    "details": c.details,
                }
                for c in self.checks
            ],
            "details": self.details,
        }


class HealthChecker:
    """Performs health checks on all service dependencies.

    Example:
        checker = HealthChecker(config)
        result = await checker.run_all_checks()
        if not result.healthy:
            print(f"Issues detected: {result.details}")
    """

    def __init__(
        self,
        config: RelayConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the health checker.

        Args:
            config: Application configuration
            http_client: HTTP client for GitHub calls. If None, the GitHub
                adapter creates its own.
        """
        self._config = config
        self._http_client = http_client

    async def run_all_checks(self) -> HealthReport:
        """Run all health checks and return a report."""
        log.info(LogEventNames.HEALTH_CHECK_START)
        start_time = datetime.now(UTC)

        checks: list[CheckResult] = []

        results = await asyncio.gather(
            self._check_config(),
            self._check_slack_tokens(),
            self._check_github_access(),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException):
                checks.append(
                    CheckResult(
                        name="unknown",
                        status=HealthStatus.UNHEALTHY,
                        message=f"Check failed with exception: {result}",
                    )
                )
            else:
                checks.append(result)

        if all(c.status == HealthStatus.HEALTHY for c in checks):
            overall_status = HealthStatus.HEALTHY
            healthy = True
        elif any(c.status == HealthStatus.UNHEALTHY for c in checks):
            overall_status = HealthStatus.UNHEALTHY
            healthy = False
        else:
            overall_status = HealthStatus.DEGRADED
            healthy = True

        report = HealthReport(
            healthy=healthy,
            status=overall_status,
            timestamp=start_time,
            checks=checks,
            details={
                "total_checks": len(checks),
                "healthy_checks": sum(1 for c in checks if c.status == HealthStatus.HEALTHY),
                "unhealthy_checks": sum(1 for c in checks if c.status == HealthStatus.UNHEALTHY),
                "failed": [c.name for c in checks if c.status != HealthStatus.HEALTHY],
            },
        )

        log.info(
            LogEventNames.HEALTH_CHECK_COMPLETE,
            healthy=healthy,
            status=overall_status.value,
            checks_run=len(checks),
        )

        return report

    async def _check_config(self) -> CheckResult:
        """Check configuration consistency."""
        slack = self._config.slack
        workflow = self._config.workflow

        if slack.notify_channel != slack.authorized_channel:
            return CheckResult(
                name="config",
                status=HealthStatus.DEGRADED,
                message="Status notices go to a different channel than the authorized one",
                details={
                    "notify_channel": slack.notify_channel,
                    "authorized_channel": slack.authorized_channel,
                },
            )

        return CheckResult(
            name="config",
            status=HealthStatus.HEALTHY,
            message="Configuration valid",
            details={
                "workflow_file": workflow.workflow_file,
                "ref": workflow.ref,
                "target_branch": workflow.target_branch,
            },
        )

    async def _check_slack_tokens(self) -> CheckResult:
        """Check Slack token availability (not validity - that requires API call)."""
        slack_config = self._config.slack

        if not slack_config.bot_token.startswith("xoxb-"):
            return CheckResult(
                name="slack_tokens",
                status=HealthStatus.UNHEALTHY,
                message="Invalid bot token format",
            )

        if not slack_config.app_token.startswith("xapp-"):
            return CheckResult(
                name="slack_tokens",
                status=HealthStatus.UNHEALTHY,
                message="Invalid app token format",
            )

        if not slack_config.signing_secret:
            return CheckResult(
                name="slack_tokens",
                status=HealthStatus.UNHEALTHY,
                message="Signing secret missing",
            )

        return CheckResult(
            name="slack_tokens",
            status=HealthStatus.HEALTHY,
            message="Slack tokens configured",
        )

    async def _check_github_access(self) -> CheckResult:
        """Check the GitHub token can see the target repository."""
        from release_relay.adapters.ci.github_actions import GitHubActionsAdapter

        github = self._config.github
        start = time.monotonic()

        adapter = GitHubActionsAdapter(github, client=self._http_client)
        try:
            repository = await adapter.get_repository()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            reason = {
                401: "GitHub token rejected",
                403: "GitHub token lacks access",
                404: "Repository not found or not visible to token",
            }.get(status_code, f"GitHub returned status {status_code}")
            return CheckResult(
                name="github_access",
                status=HealthStatus.UNHEALTHY,
                message=reason,
                latency_ms=(time.monotonic() - start) * 1000,
                details={"repository": github.full_name, "status_code": status_code},
            )
        except httpx.HTTPError as e:
            return CheckResult(
                name="github_access",
                status=HealthStatus.UNHEALTHY,
                message=f"GitHub unreachable: {e}",
                details={"repository": github.full_name},
            )
        except ValueError as e:
            return CheckResult(
                name="github_access",
                status=HealthStatus.UNHEALTHY,
                message=f"GitHub returned an unreadable response: {e}",
                latency_ms=(time.monotonic() - start) * 1000,
                details={"repository": github.full_name},
            )
        finally:
            if self._http_client is None:
                await adapter.close()

        return CheckResult(
            name="github_access",
            status=HealthStatus.HEALTHY,
            message="GitHub repository accessible",
            latency_ms=(time.monotonic() - start) * 1000,
            details={
                "repository": repository.get("full_name", github.full_name),
                "default_branch": repository.get("default_branch"),
            },
        )
