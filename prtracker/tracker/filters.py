from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from prtracker.models.pull_request import PullRequestSummary


@dataclass(frozen=True)
class FilterState:
    """Dashboard filters: repository substring and maximum age in days (0 = all time)."""

    repo_query: str = ""
    age_days: int = 0

    @classmethod
    def create(cls, repo_query: str = "", age_days: int = 0) -> "FilterState":
        if age_days < 0:
            raise ValueError(f"age_days must be >= 0, got {age_days}")
        return cls(repo_query=(repo_query or "").strip().lower(), age_days=age_days)

    @property
    def is_active(self) -> bool:
        return bool(self.repo_query) or self.age_days > 0

    def cutoff(self, now: datetime) -> Optional[datetime]:
        if self.age_days == 0:
            return None
        return now - timedelta(days=self.age_days)

    def matches(self, pr: PullRequestSummary, now: datetime) -> bool:
        if self.repo_query and self.repo_query not in pr.repo.lower():
            return False
        cutoff = self.cutoff(now)
        return cutoff is None or pr.updated_at >= cutoff
