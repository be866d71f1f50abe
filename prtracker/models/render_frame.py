from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from prtracker.models.check_signal import AggregatedStatus, SignalKind
from prtracker.models.pull_request import PullRequestSummary
from prtracker.models.readiness import MergeReadiness
from prtracker.models.review import ReviewSummary


class CheckDetail(BaseModel):
    """A failed or still running check, described for the dashboard."""

    model_config = ConfigDict(frozen=True)

    kind: SignalKind
    name: str
    summary: str
    url: Optional[str] = None
    status: Optional[str] = None
    conclusion: Optional[str] = None
    duration: Optional[str] = None
    event: Optional[str] = None


class PullRequestView(BaseModel):
    """Everything the presentation layer needs to draw one pull request row."""

    model_config = ConfigDict(frozen=True)

    pull_request: PullRequestSummary
    ci_status: AggregatedStatus
    reviews: ReviewSummary
    mergeable: Optional[bool] = None
    mergeable_state: str = "unknown"
    readiness: MergeReadiness
    readiness_label: str
    details_url: str
    failures: List[CheckDetail] = Field(default_factory=list)
    running: List[CheckDetail] = Field(default_factory=list)
    can_restart: bool = False


class RenderFrame(BaseModel):
    """An immutable snapshot of the rendered pull request list."""

    model_config = ConfigDict(frozen=True)

    display_epoch: int
    fetch_epoch: Optional[int] = None
    rows: List[PullRequestView] = Field(default_factory=list)
    processed: int = 0
    total: int = 0
    complete: bool = False
    message: Optional[str] = None
