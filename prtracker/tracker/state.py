from dataclasses import dataclass, field
from typing import Any, List, Optional

from prtracker.config import settings
from prtracker.models.pull_request import PullRequestSummary
from prtracker.models.render_frame import RenderFrame
from prtracker.tracker.cache import EnrichmentCache
from prtracker.tracker.epochs import FetchEpoch
from prtracker.tracker.filters import FilterState


@dataclass
class TrackerState:
    """Mutable dashboard state, owned by exactly one RefreshOrchestrator."""

    fetch_counter: int = 0
    display_counter: int = 0
    current_fetch: Optional[FetchEpoch] = None
    refreshing_epoch: Optional[int] = None
    current_display: Optional[int] = None
    display_in_progress: bool = False

    fetch_count: int = 0
    last_pr_data: Optional[str] = None
    all_prs: Optional[List[PullRequestSummary]] = None
    frame: Optional[RenderFrame] = None
    filters: FilterState = field(default_factory=FilterState)
    cache: EnrichmentCache = field(default_factory=EnrichmentCache)

    auto_refresh_enabled: bool = True
    auto_refresh_interval: float = settings.AUTO_REFRESH_INTERVAL
    visible: bool = True
    current_user: Optional[Any] = None

    @property
    def is_refreshing(self) -> bool:
        return self.refreshing_epoch is not None

    def next_fetch_epoch(self) -> FetchEpoch:
        self.fetch_counter += 1
        self.current_fetch = FetchEpoch(self.fetch_counter)
        return self.current_fetch

    def next_display_epoch(self) -> int:
        self.display_counter += 1
        self.current_display = self.display_counter
        self.display_in_progress = True
        return self.display_counter
