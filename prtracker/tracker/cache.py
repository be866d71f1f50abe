from typing import Dict, Generic, Optional, Tuple, TypeVar

from prtracker.models.pull_request import PullRequestSummary
from prtracker.utils.logger import logger

CacheKey = Tuple[str, int, str]
T = TypeVar("T")


class EnrichmentCache(Generic[T]):
    """
    Per-PR enrichment keyed by (repo, number, updated_at).

    A new updated_at produces a new key, so stale data is never returned for an
    updated pull request. Storing an entry evicts every other key of the same
    pull request, leaving at most one entry per (repo, number).
    """

    def __init__(self):
        self._entries: Dict[CacheKey, T] = {}

    @staticmethod
    def key_for(pr: PullRequestSummary) -> CacheKey:
        return pr.repo, pr.number, pr.updated_at.isoformat()

    def get(self, pr: PullRequestSummary) -> Optional[T]:
        return self._entries.get(self.key_for(pr))

    def put(self, pr: PullRequestSummary, entry: T) -> None:
        key = self.key_for(pr)
        stale = [k for k in self._entries if k[:2] == key[:2] and k != key]
        for stale_key in stale:
            logger.debug(f"Evicting cached enrichment for {stale_key}")
            del self._entries[stale_key]
        self._entries[key] = entry

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
