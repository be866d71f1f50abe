"""
Per-PR enrichment: CI signals, reviews and mergeability for one pull request.

Individual sources degrade to empty results so a single failing endpoint does
not hide the whole row. Only a failure to list the PR's commits (no head SHA,
no checks) degrades every field at once.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, List, Optional

from prtracker.integrations.github.client import GitHubClient
from prtracker.integrations.github.exceptions import GitHubError
from prtracker.models.check_signal import AggregatedStatus, PullRequestChecks
from prtracker.models.pull_request import MergeabilityInfo, PullRequestSummary
from prtracker.models.render_frame import PullRequestView
from prtracker.models.review import ReviewSummary
from prtracker.status.aggregator import aggregate_signals, normalize
from prtracker.status.check_details import details_url, failure_details, running_details
from prtracker.status.merge_readiness import classify
from prtracker.status.required_checks import RequiredCheckRules, default_rules
from prtracker.status.reviews import summarize_reviews
from prtracker.utils.logger import logger


@dataclass(frozen=True)
class PullRequestEnrichment:
    checks: PullRequestChecks
    reviews: ReviewSummary
    mergeability: MergeabilityInfo

    @classmethod
    def fallback(cls) -> "PullRequestEnrichment":
        return cls(PullRequestChecks(), ReviewSummary(), MergeabilityInfo())


async def _or_empty(call: Awaitable[List[Any]], label: str) -> List[Any]:
    try:
        return await call
    except GitHubError as e:
        logger.warning(f"Could not fetch {label}: {e}")
        return []


async def fetch_checks(
    client: GitHubClient,
    repo: str,
    number: int,
    rules: RequiredCheckRules = default_rules,
) -> PullRequestChecks:
    """Collect every CI signal of the PR head commit. Raises if commits cannot be listed."""
    commits = await client.get_pull_commits(repo, number)
    if not commits:
        return PullRequestChecks()

    head = commits[-1] if isinstance(commits[-1], dict) else {}
    head_sha = head.get("sha")
    if not head_sha:
        logger.warning(f"Head commit of {repo}#{number} has no SHA")
        return PullRequestChecks()
    check_runs, statuses, workflow_runs = await asyncio.gather(
        _or_empty(client.get_check_runs(repo, head_sha), f"check runs for {repo}@{head_sha}"),
        _or_empty(client.get_commit_statuses(repo, head_sha), f"statuses for {repo}@{head_sha}"),
        _or_empty(client.get_workflow_runs(repo, head_sha), f"workflow runs for {repo}@{head_sha}"),
    )
    signals = normalize(check_runs, statuses, workflow_runs, rules)
    return PullRequestChecks(
        status=aggregate_signals(signals), head_sha=head_sha, signals=signals
    )


async def fetch_reviews(client: GitHubClient, repo: str, number: int) -> ReviewSummary:
    try:
        reviews = await client.get_reviews(repo, number)
    except GitHubError as e:
        logger.warning(f"Could not fetch reviews for {repo}#{number}: {e}")
        return ReviewSummary()
    return summarize_reviews(reviews)


async def fetch_mergeability(
    client: GitHubClient, repo: str, number: int
) -> MergeabilityInfo:
    try:
        details = await client.get_pull_request(repo, number)
    except GitHubError as e:
        logger.warning(f"Could not fetch details for {repo}#{number}: {e}")
        return MergeabilityInfo()
    return MergeabilityInfo(
        mergeable=details.get("mergeable"),
        mergeable_state=details.get("mergeable_state") or "unknown",
    )


async def enrich(
    client: GitHubClient,
    pr: PullRequestSummary,
    rules: RequiredCheckRules = default_rules,
) -> PullRequestEnrichment:
    checks, reviews, mergeability = await asyncio.gather(
        fetch_checks(client, pr.repo, pr.number, rules),
        fetch_reviews(client, pr.repo, pr.number),
        fetch_mergeability(client, pr.repo, pr.number),
        return_exceptions=True,
    )
    for result in (checks, reviews, mergeability):
        if isinstance(result, GitHubError):
            logger.error(f"Error fetching data for {pr.repo}#{pr.number}: {result}")
            return PullRequestEnrichment.fallback()
        if isinstance(result, BaseException):
            raise result
    return PullRequestEnrichment(checks, reviews, mergeability)


def build_view(
    pr: PullRequestSummary,
    enrichment: PullRequestEnrichment,
    auth_method: Optional[str] = None,
) -> PullRequestView:
    """Classify one enriched pull request into a renderable row."""
    checks = enrichment.checks
    mergeability = enrichment.mergeability
    readiness = classify(
        mergeability.mergeable,
        mergeability.mergeable_state,
        enrichment.reviews.approvals,
        checks.status,
    )
    failures = failure_details(checks) if checks.status == AggregatedStatus.FAILURE else []
    running = (
        running_details(checks)
        if checks.status in (AggregatedStatus.FAILURE, AggregatedStatus.PENDING)
        else []
    )
    return PullRequestView(
        pull_request=pr,
        ci_status=checks.status,
        reviews=enrichment.reviews,
        mergeable=mergeability.mergeable,
        mergeable_state=mergeability.mergeable_state,
        readiness=readiness,
        readiness_label=readiness.label,
        details_url=details_url(pr.repo, pr.number, checks),
        failures=failures,
        running=running,
        can_restart=checks.status == AggregatedStatus.FAILURE and auth_method == "token",
    )
