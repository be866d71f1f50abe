from typing import List, Optional, Sequence

from prtracker.integrations.github.client import GitHubClient
from prtracker.integrations.github.exceptions import GitHubError
from prtracker.models.pull_request import PullRequestSummary
from prtracker.tracker.epochs import FetchEpoch
from prtracker.utils.logger import logger


async def filter_by_merge_readiness(
    prs: Sequence[PullRequestSummary],
    current_user: str,
    client: GitHubClient,
    epoch: Optional[FetchEpoch] = None,
) -> List[PullRequestSummary]:
    """
    Keep PRs authored by `current_user` or whose merge-when-ready was enabled by them.

    PRs are checked one at a time; the epoch is re-checked before each GraphQL
    call so a superseded fetch stops issuing requests. When the auto-merge
    lookup fails the PR is kept only if `current_user` authored it.
    """
    kept = []
    for pr in prs:
        if epoch is not None:
            epoch.raise_if_cancelled()

        is_mine = pr.author_login == current_user
        try:
            auto_merge = await client.get_auto_merge_request(pr.owner, pr.name, pr.number)
        except GitHubError as e:
            logger.warning(f"Could not check auto-merge for {pr.repo}#{pr.number}: {e}")
            if is_mine:
                kept.append(pr)
            continue

        enabled_by_me = auto_merge is not None and auto_merge.enabled_by_login == current_user
        if is_mine or enabled_by_me:
            kept.append(pr.model_copy(update={"auto_merge": auto_merge}))

    if epoch is not None:
        epoch.raise_if_cancelled()
    logger.debug(f"{len(kept)} of {len(prs)} pull requests kept after auto-merge filter")
    return kept
