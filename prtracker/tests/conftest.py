import asyncio
from collections import defaultdict
from typing import Any, Dict, List, Optional

import httpx
import pytest

from prtracker.integrations.github.gateway import GitHubGateway
from prtracker.models.pull_request import PullRequestSummary
from prtracker.tracker.sink import RenderSink

API_URL = "https://api.github.test"
OAUTH_URL = "https://github.test"


class RecordingSink(RenderSink):
    """Collects everything the orchestrator emits."""

    def __init__(self):
        self.frames = []
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.successes: List[str] = []
        self.loading: List[bool] = []
        self.refreshing: List[bool] = []

    def render(self, frame):
        self.frames.append(frame)

    def show_loading(self, show):
        self.loading.append(show)

    def show_refresh_status(self, show):
        self.refreshing.append(show)

    def show_error(self, message):
        self.errors.append(message)

    def show_warning(self, message):
        self.warnings.append(message)

    def show_success(self, message):
        self.successes.append(message)


class FakeGitHubClient:
    """
    In-memory stand-in for GitHubClient.

    `errors` maps a method name, or (method name, key), to the exception it
    raises. `gates` holds one asyncio.Event per upcoming call of a method; the
    call blocks until the event is set. `entered` is set on the first call.
    """

    def __init__(self, login: str = "octocat"):
        self.login = login
        self.search_items: List[Dict[str, Any]] = []
        self.auto_merge: Dict[Any, Any] = {}
        self.commits: Dict[Any, List[Dict[str, Any]]] = {}
        self.check_runs: Dict[str, List[Dict[str, Any]]] = {}
        self.statuses: Dict[str, List[Dict[str, Any]]] = {}
        self.workflow_runs: Dict[str, List[Dict[str, Any]]] = {}
        self.reviews: Dict[Any, List[Dict[str, Any]]] = {}
        self.details: Dict[Any, Dict[str, Any]] = {}
        self.errors: Dict[Any, Exception] = {}
        self.gates = defaultdict(list)
        self.entered = defaultdict(asyncio.Event)
        self.calls: List[tuple] = []

    def call_count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def _enter(self, name: str, key: Any = None) -> None:
        self.calls.append((name, key))
        self.entered[name].set()
        if self.gates[name]:
            await self.gates[name].pop(0).wait()
        error = self.errors.get((name, key)) or self.errors.get(name)
        if error is not None:
            raise error

    async def get_user(self):
        await self._enter("get_user")
        return {"login": self.login}

    async def search_pull_requests(self, query):
        await self._enter("search_pull_requests", query)
        return list(self.search_items)

    async def get_auto_merge_request(self, owner, repo, number):
        key = (f"{owner}/{repo}", number)
        await self._enter("get_auto_merge_request", key)
        return self.auto_merge.get(key)

    async def get_pull_commits(self, repo, number):
        await self._enter("get_pull_commits", (repo, number))
        return self.commits.get((repo, number), [{"sha": f"sha-{number}"}])

    async def get_check_runs(self, repo, sha):
        await self._enter("get_check_runs", sha)
        return self.check_runs.get(sha, [])

    async def get_commit_statuses(self, repo, sha):
        await self._enter("get_commit_statuses", sha)
        return self.statuses.get(sha, [])

    async def get_workflow_runs(self, repo, sha):
        await self._enter("get_workflow_runs", sha)
        return self.workflow_runs.get(sha, [])

    async def get_reviews(self, repo, number):
        await self._enter("get_reviews", (repo, number))
        return self.reviews.get((repo, number), [])

    async def get_pull_request(self, repo, number):
        await self._enter("get_pull_request", (repo, number))
        return self.details.get(
            (repo, number), {"mergeable": True, "mergeable_state": "clean"}
        )

    async def rerequest_check_run(self, repo, check_run_id):
        await self._enter("rerequest_check_run", check_run_id)

    async def rerun_workflow(self, repo, run_id):
        await self._enter("rerun_workflow", run_id)

    async def rerun_failed_jobs(self, repo, run_id):
        await self._enter("rerun_failed_jobs", run_id)


def make_search_item(
    repo: str,
    number: int,
    author: str = "octocat",
    updated_at: str = "2024-05-01T10:00:00Z",
    title: Optional[str] = None,
    archived: bool = False,
) -> Dict[str, Any]:
    return {
        "repository_url": f"https://api.github.com/repos/{repo}",
        "number": number,
        "title": title or f"Change #{number}",
        "user": {"login": author},
        "updated_at": updated_at,
        "html_url": f"https://github.com/{repo}/pull/{number}",
        "repository": {"archived": archived},
    }


@pytest.fixture
def fake_client():
    return FakeGitHubClient()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def search_item():
    return make_search_item


@pytest.fixture
def pull_request():
    def factory(repo="octo/app", number=1, **kwargs):
        return PullRequestSummary.from_search_item(make_search_item(repo, number, **kwargs))

    return factory


@pytest.fixture
def make_gateway():
    """Build a GitHubGateway whose HTTP client answers through `handler`."""

    def factory(handler):
        return GitHubGateway(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            api_url=API_URL,
            oauth_url=OAUTH_URL,
            user_agent="PR-Tracker",
        )

    return factory
