"""Data models for workflow dispatch and run lookup."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config.schema import WorkflowConfig


class LockOption(StrEnum):
    """Value of the workflow's LockStatus input."""

    LOCK = "lock"
    UNLOCK = "unlock"


@dataclass(frozen=True)
class WorkflowRequest:
    """Parameters of a single workflow dispatch."""

    workflow_file: str
    ref: str  # Branch the workflow itself runs on
    lock_option: LockOption
    target_branch: str

    @classmethod
    def for_option(cls, config: WorkflowConfig, option: LockOption) -> WorkflowRequest:
        """Build the request for a lock option from configured defaults."""
        return cls(
            workflow_file=config.workflow_file,
            ref=config.ref,
            lock_option=option,
            target_branch=config.target_branch,
        )

    def to_payload(self) -> dict[str, Any]:
        """Body of the workflow_dispatch API call."""
        return {
            "ref": self.ref,
            "inputs": {
                "LockStatus": self.lock_option.value,
                "Branch": self.target_branch,
            },
        }


@dataclass(frozen=True)
class WorkflowDispatchResult:
    """Acknowledgment returned by the CI platform for a dispatch."""

    accepted: bool
    status_code: int


@dataclass(frozen=True)
class RunReference:
    """Link to a workflow run."""

    url: str
    name: str | None = None
    path: str | None = None
