from datetime import datetime
from typing import List, Optional
import enum

from pydantic import BaseModel, ConfigDict, Field


class SignalKind(enum.Enum):
    """The three GitHub mechanisms that report CI results for a commit."""

    CHECK_RUN = "check_run"
    STATUS = "status"
    WORKFLOW_RUN = "workflow_run"


class AggregatedStatus(enum.Enum):
    """One CI verdict for a pull request head commit."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    UNKNOWN = "unknown"


class CheckSignal(BaseModel):
    """A single CI record normalized from a check run, commit status or workflow run."""

    model_config = ConfigDict(frozen=True)

    kind: SignalKind
    name: str = Field(..., description="Check name, status context or workflow name.")
    state: Optional[str] = Field(
        None,
        description="Effective state: the conclusion once completed, otherwise the status.",
    )
    status: Optional[str] = None
    conclusion: Optional[str] = None
    required: bool = Field(
        True, description="False when the name matches an optional-check rule."
    )
    id: Optional[int] = None
    html_url: Optional[str] = None
    summary: Optional[str] = Field(
        None, description="Check run output summary or commit status description."
    )
    event: Optional[str] = None
    display_title: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class PullRequestChecks(BaseModel):
    """All CI signals of a pull request head commit plus their verdict."""

    model_config = ConfigDict(frozen=True)

    status: AggregatedStatus = AggregatedStatus.UNKNOWN
    head_sha: Optional[str] = None
    signals: List[CheckSignal] = Field(default_factory=list)

    def of_kind(self, kind: SignalKind) -> List[CheckSignal]:
        return [signal for signal in self.signals if signal.kind == kind]
