from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class AutoMergeInfo(BaseModel):
    """An active "merge when ready" request as reported by GraphQL."""

    model_config = ConfigDict(frozen=True)

    enabled_at: Optional[datetime] = None
    enabled_by_login: Optional[str] = None
    merge_method: Optional[str] = None

    @classmethod
    def from_graphql(cls, node: Dict[str, Any]) -> "AutoMergeInfo":
        enabled_by = node.get("enabledBy") or {}
        return cls(
            enabled_at=node.get("enabledAt"),
            enabled_by_login=enabled_by.get("login"),
            merge_method=node.get("mergeMethod"),
        )


class PullRequestSummary(BaseModel):
    """An open pull request found by the search API, refreshed wholesale each poll."""

    model_config = ConfigDict(frozen=True)

    repo: str = Field(..., description="Repository full name, owner/name.")
    number: int
    title: str
    author_login: str
    updated_at: datetime
    html_url: str
    auto_merge: Optional[AutoMergeInfo] = None

    @property
    def identity(self) -> Tuple[str, int]:
        return self.repo, self.number

    @property
    def owner(self) -> str:
        return self.repo.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repo.split("/", 1)[1]

    @property
    def has_merge_when_ready(self) -> bool:
        return self.auto_merge is not None

    @classmethod
    def from_search_item(cls, item: Dict[str, Any]) -> "PullRequestSummary":
        """Build a summary from one `search/issues` result item."""
        url_parts = item["repository_url"].rstrip("/").split("/")
        return cls(
            repo=f"{url_parts[-2]}/{url_parts[-1]}",
            number=item["number"],
            title=item.get("title") or "",
            author_login=(item.get("user") or {}).get("login", ""),
            updated_at=item["updated_at"],
            html_url=item.get("html_url") or "",
        )

    def __repr__(self):
        return f"<PullRequestSummary(repo={self.repo}, number={self.number}, title={self.title})>"


class MergeabilityInfo(BaseModel):
    """GitHub's own mergeability fields for a pull request."""

    model_config = ConfigDict(frozen=True)

    mergeable: Optional[bool] = None
    mergeable_state: str = "unknown"
