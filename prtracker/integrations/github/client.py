"""
GitHub API client used by the refresh orchestrator.

Wraps GitHubGateway with one method per GitHub call the dashboard makes. Every
method raises a GitHubError (UpstreamError, TransportError or
MalformedResponseError) on failure; callers decide which failures degrade to
fallbacks.
"""

from typing import Any, Dict, List, Optional, Tuple, Type, Union

from prtracker.integrations.github.gateway import GitHubGateway, bearer, decode_json
from prtracker.integrations.github.queries import AUTO_MERGE_QUERY
from prtracker.models.pull_request import AutoMergeInfo


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _items(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = data.get(key)
    return items if isinstance(items, list) else []


class GitHubClient:
    """Authenticated GitHub client for one signed-in user."""

    def __init__(self, gateway: GitHubGateway, access_token: Optional[str]):
        self.gateway = gateway
        self.access_token = access_token

    @property
    def authorization(self) -> Optional[str]:
        return bearer(self.access_token)

    async def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        expected: Union[Type, Tuple[Type, ...]] = dict,
    ) -> Any:
        response = await self.gateway.rest(
            "GET", path, authorization=self.authorization, params=params
        )
        return decode_json(response, expected)

    async def _post(self, path: str) -> None:
        await self.gateway.rest("POST", path, authorization=self.authorization)

    async def get_user(self) -> Dict[str, Any]:
        return await self._get("/user")

    async def search_pull_requests(self, query: str) -> List[Dict[str, Any]]:
        """Search issues/PRs, newest update first (one page of 100)."""
        data = await self._get(
            "/search/issues", params={"q": query, "per_page": 100, "sort": "updated"}
        )
        return _items(data, "items")

    async def get_pull_request(self, repo: str, number: int) -> Dict[str, Any]:
        return await self._get(f"/repos/{repo}/pulls/{number}")

    async def get_reviews(self, repo: str, number: int) -> List[Dict[str, Any]]:
        return await self._get(f"/repos/{repo}/pulls/{number}/reviews", expected=list)

    async def get_pull_commits(self, repo: str, number: int) -> List[Dict[str, Any]]:
        return await self._get(f"/repos/{repo}/pulls/{number}/commits", expected=list)

    async def get_check_runs(self, repo: str, sha: str) -> List[Dict[str, Any]]:
        data = await self._get(f"/repos/{repo}/commits/{sha}/check-runs")
        return _items(data, "check_runs")

    async def get_commit_statuses(self, repo: str, sha: str) -> List[Dict[str, Any]]:
        data = await self._get(f"/repos/{repo}/commits/{sha}/status")
        return _items(data, "statuses")

    async def get_workflow_runs(self, repo: str, sha: str) -> List[Dict[str, Any]]:
        data = await self._get(
            f"/repos/{repo}/actions/runs", params={"head_sha": sha, "per_page": 100}
        )
        return _items(data, "workflow_runs")

    async def get_auto_merge_request(
        self, owner: str, repo: str, number: int
    ) -> Optional[AutoMergeInfo]:
        data = await self.gateway.graphql(
            AUTO_MERGE_QUERY,
            {"owner": owner, "repo": repo, "number": number},
            authorization=self.authorization,
        )
        node = _dig(data, "data", "repository", "pullRequest", "autoMergeRequest")
        return AutoMergeInfo.from_graphql(node) if isinstance(node, dict) else None

    async def rerequest_check_run(self, repo: str, check_run_id: int) -> None:
        await self._post(f"/repos/{repo}/check-runs/{check_run_id}/rerequest")

    async def rerun_workflow(self, repo: str, run_id: int) -> None:
        await self._post(f"/repos/{repo}/actions/runs/{run_id}/rerun")

    async def rerun_failed_jobs(self, repo: str, run_id: int) -> None:
        await self._post(f"/repos/{repo}/actions/runs/{run_id}/rerun-failed-jobs")
