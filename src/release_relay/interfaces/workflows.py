"""Abstract interface for CI workflow platforms."""

from typing import Protocol

from ..models.workflow import RunReference, WorkflowDispatchResult, WorkflowRequest


class WorkflowProvider(Protocol):
    """Abstract interface for remote CI/CD workflow platforms.

    This protocol defines the two calls the relay makes: start a
    workflow and find a link to the run it started.
    """

    async def dispatch(self, request: WorkflowRequest) -> WorkflowDispatchResult:
        """
        Start a workflow with the request's inputs.

        No retry is attempted.

        Args:
            request: Workflow file, ref and inputs

        Returns:
            Acknowledgment from the platform

        Raises:
            DispatchError: If the platform rejects the call or is unreachable
        """
        ...

    async def latest_run_reference(self, workflow_file: str) -> RunReference | None:
        """
        Find a link to the most recent run of a workflow.

        Never raises. A failed lookup returns None.

        Args:
            workflow_file: Workflow file name (e.g., "change-branch-lock-status.yml")

        Returns:
            RunReference if a run was found, None otherwise
        """
        ...

    async def close(self) -> None:
        """
        Release network resources.
        """
        ...
