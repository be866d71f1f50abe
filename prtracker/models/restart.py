from collections import Counter
from typing import Dict, List, Optional
import enum

from pydantic import BaseModel, Field

from prtracker.models.check_signal import SignalKind


class RestartFailureReason(enum.Enum):
    PERMISSION = "permission"
    NOT_RERUNNABLE = "not-rerunnable"
    RUNNING_JOBS = "running-jobs"
    NOT_FOUND = "not-found"
    HTTP_ERROR = "http-error"
    NETWORK = "network"


class RestartFailure(BaseModel):
    kind: SignalKind
    name: str
    reason: RestartFailureReason
    message: str
    status_code: Optional[int] = None


class RestartReport(BaseModel):
    """Outcome of restarting every failed check and workflow of one pull request."""

    repo: str
    number: int
    total: int = 0
    restarted: int = 0
    failures: List[RestartFailure] = Field(default_factory=list)

    @property
    def failure_counts(self) -> Dict[RestartFailureReason, int]:
        return dict(Counter(failure.reason for failure in self.failures))

    @property
    def message(self) -> str:
        if self.total == 0:
            return "No failed checks or workflows found to restart"
        if not self.failures:
            return f"Restarted {self.restarted} of {self.total} failed check(s)/workflow(s)"

        if self.restarted == 0:
            text = "Failed to restart any workflows. "
        else:
            text = (
                f"Restarted {self.restarted} workflows, "
                f"but {len(self.failures)} failed to restart. "
            )

        counts = self.failure_counts
        if counts.get(RestartFailureReason.PERMISSION):
            text += (
                f"{counts[RestartFailureReason.PERMISSION]} failed due to insufficient "
                "permissions. You may need to re-authenticate with workflow permissions. "
            )
        if counts.get(RestartFailureReason.NOT_RERUNNABLE):
            text += (
                f"{counts[RestartFailureReason.NOT_RERUNNABLE]} cannot be rerun "
                "(may be too old or use restricted workflow types). "
            )
        if counts.get(RestartFailureReason.RUNNING_JOBS):
            text += (
                f"{counts[RestartFailureReason.RUNNING_JOBS]} cannot restart while other "
                "jobs are running - wait for running jobs to complete first. "
            )
        return text.rstrip()
