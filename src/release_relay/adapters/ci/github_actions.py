"""GitHub Actions workflow adapter using the REST API.

This module implements the WorkflowProvider protocol for GitHub Actions
over httpx.

Operations:
- Dispatch a workflow_dispatch event with LockStatus/Branch inputs
- Look up the most recent run to link back into chat

Dispatch failures are raised to the caller. Run lookups are cosmetic and
never raise.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from ...config.schema import GitHubConfig
from ...models.workflow import RunReference, WorkflowDispatchResult, WorkflowRequest
from ...utils.logging import LogEventNames

log = structlog.get_logger()


class WorkflowClientError(Exception):
    """Base exception for workflow client errors."""


class DispatchError(WorkflowClientError):
    """Raised when the workflow dispatch call fails.

    Attributes:
        status_code: HTTP status returned by the API, None on transport failure.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LookupFailure(WorkflowClientError):
    """Raised internally when the run lookup fails."""


def select_run_reference(
    runs: Sequence[dict[str, Any]],
    workflow_file: str,
) -> RunReference | None:
    """Pick the run to link for a workflow.

    A run whose name equals the workflow file, or whose path ends with
    it, wins over a more recent non-matching run. Without a match the
    first (most recent) run is used.

    Args:
        runs: Run objects as returned by the API, most recent first.
        workflow_file: Workflow file name.

    Returns:
        RunReference for the selected run, or None if there are no runs
        with a URL.
    """
    if not runs:
        return None

    selected = next(
        (
            run
            for run in runs
            if run.get("name") == workflow_file
            or str(run.get("path") or "").endswith(workflow_file)
        ),
        runs[0],
    )

    url = selected.get("html_url")
    if not url:
        return None

    return RunReference(url=url, name=selected.get("name"), path=selected.get("path"))


class GitHubActionsAdapter:
    """GitHub Actions adapter implementing the WorkflowProvider protocol.

    Example:
        config = GitHubConfig(token="ghp_...", owner="acme", repo="billing")
        async with GitHubActionsAdapter(config) as actions:
            await actions.dispatch(request)
            run = await actions.latest_run_reference(request.workflow_file)
    """

    def __init__(
        self,
        config: GitHubConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the GitHub Actions adapter.

        Args:
            config: GitHub-specific configuration.
            client: HTTP client to use. If None, creates one bound to the API URL.
        """
        self._config = config
        self._client = client or httpx.AsyncClient(
            base_url=config.api_url,
            timeout=config.timeout,
        )
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": config.api_version,
        }

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubActionsAdapter:
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    def _repo_path(self, suffix: str) -> str:
        return f"/repos/{self._config.owner}/{self._config.repo}{suffix}"

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        """Extract GitHub's error message from a response body."""
        try:
            data = response.json()
        except ValueError:
            return (response.text or "").strip().replace("\n", " ")[:200]
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return ""

    async def dispatch(self, request: WorkflowRequest) -> WorkflowDispatchResult:
        """Trigger a workflow_dispatch event.

        Args:
            request: Workflow file, ref and inputs.

        Returns:
            Acknowledgment of the accepted dispatch.

        Raises:
            DispatchError: On a non-2xx response or network failure.
        """
        path = self._repo_path(f"/actions/workflows/{request.workflow_file}/dispatches")

        try:
            response = await self._client.post(
                path,
                json=request.to_payload(),
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            log.error(
                LogEventNames.WORKFLOW_DISPATCH_FAILED,
                workflow=request.workflow_file,
                error=str(e),
            )
            raise DispatchError(f"Failed to reach GitHub: {e}") from e

        if not response.is_success:
            detail = self._error_detail(response)
            log.error(
                "workflow_dispatch_rejected",
                workflow=request.workflow_file,
                status_code=response.status_code,
                detail=detail,
            )
            message = f"Workflow dispatch failed with status {response.status_code}"
            if detail:
                message = f"{message}: {detail}"
            raise DispatchError(message, status_code=response.status_code)

        log.info(
            LogEventNames.WORKFLOW_DISPATCHED,
            workflow=request.workflow_file,
            ref=request.ref,
            lock_option=request.lock_option.value,
            target_branch=request.target_branch,
        )
        return WorkflowDispatchResult(accepted=True, status_code=response.status_code)

    async def _fetch_runs(self) -> list[dict[str, Any]]:
        """Fetch the most recent runs in the repository.

        Raises:
            LookupFailure: If the request fails or the body is malformed.
        """
        try:
            response = await self._client.get(
                self._repo_path("/actions/runs"),
                params={"per_page": self._config.run_page_size},
                headers=self._headers,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LookupFailure(f"Failed to list workflow runs: {e}") from e

        runs = data.get("workflow_runs") if isinstance(data, dict) else None
        if not isinstance(runs, list):
            raise LookupFailure("Unexpected workflow runs payload")
        return [run for run in runs if isinstance(run, dict)]

    async def latest_run_reference(self, workflow_file: str) -> RunReference | None:
        """Look up a link to the most recent run of a workflow.

        Args:
            workflow_file: Workflow file name.

        Returns:
            RunReference if found, None if there are no runs or the lookup failed.
        """
        try:
            runs = await self._fetch_runs()
        except LookupFailure as e:
            log.warning(LogEventNames.RUN_LOOKUP_FAILED, workflow=workflow_file, error=str(e))
            return None

        reference = select_run_reference(runs, workflow_file)
        log.debug(
            "run_lookup_complete",
            workflow=workflow_file,
            runs_count=len(runs),
            url=reference.url if reference else None,
        )
        return reference

    async def get_repository(self) -> dict[str, Any]:
        """Fetch repository metadata, used to verify token access.

        Raises:
            httpx.HTTPStatusError: If the repository is not accessible.
        """
        response = await self._client.get(self._repo_path(""), headers=self._headers)
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        return data
