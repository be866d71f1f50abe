"""
Refresh orchestrator: the fetch lifecycle of the dashboard.

    Idle -> Fetching -> Displaying -> Idle
              |             |
              +--(cancel)---+--> Cancelled (silent)

Each fetch runs in its own asyncio task under a FetchEpoch; each rendering
pass gets a display epoch. Only work whose epochs are still current may touch
the displayed frame, so a response from a superseded fetch never reaches the
screen regardless of the order in which network calls complete.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Set

from prtracker.config import settings
from prtracker.integrations.github.client import GitHubClient
from prtracker.integrations.github.exceptions import GitHubError
from prtracker.models.pull_request import PullRequestSummary
from prtracker.models.render_frame import PullRequestView, RenderFrame
from prtracker.models.restart import RestartReport
from prtracker.status.required_checks import RequiredCheckRules, default_rules
from prtracker.tracker import restart
from prtracker.tracker.enrichment import PullRequestEnrichment, build_view, enrich
from prtracker.tracker.epochs import EpochSuperseded, FetchEpoch
from prtracker.tracker.filters import FilterState
from prtracker.tracker.inclusion import filter_by_merge_readiness
from prtracker.tracker.sink import RenderSink
from prtracker.tracker.state import TrackerState
from prtracker.utils.logger import logger

NO_PULL_REQUESTS = "No open pull requests found"
NO_MATCHING_PULL_REQUESTS = "No pull requests match the current filters"
TOO_MANY_REQUESTS = "Too many API requests - stopping auto-refresh for safety"
RESTART_REQUIRES_TOKEN = (
    "Restart functionality requires Personal Access Token authentication"
)


def serialize_pull_requests(prs: Sequence[PullRequestSummary]) -> str:
    """Stable serialization used to detect unchanged auto-refresh results."""
    return json.dumps([pr.model_dump(mode="json") for pr in prs], sort_keys=True)


class RefreshOrchestrator:
    def __init__(
        self,
        client: GitHubClient,
        sink: Optional[RenderSink] = None,
        *,
        auth_method: Optional[str] = None,
        state: Optional[TrackerState] = None,
        rules: RequiredCheckRules = default_rules,
        max_fetch_attempts: int = settings.MAX_FETCH_ATTEMPTS,
        restart_refresh_delay: float = settings.RESTART_REFRESH_DELAY,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.client = client
        self.sink = sink or RenderSink()
        self.auth_method = auth_method
        self.state = state or TrackerState()
        self.rules = rules
        self.max_fetch_attempts = max_fetch_attempts
        self.restart_refresh_delay = restart_refresh_delay
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._auto_refresh_task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()

    # Fetch lifecycle

    async def fetch_pull_requests(self, is_auto_refresh: bool = False) -> Optional[RenderFrame]:
        """
        Run one fetch cycle and return the final frame it rendered.

        Returns None when the cycle was skipped (already refreshing, unchanged
        auto-refresh data, safety ceiling), cancelled, or failed. Failures are
        reported to the sink; cancellations are silent.
        """
        state = self.state
        state.fetch_count += 1
        if state.fetch_count > self.max_fetch_attempts:
            logger.error("Too many fetch attempts, stopping to prevent an infinite loop")
            self.sink.show_error(TOO_MANY_REQUESTS)
            self.stop_auto_refresh()
            return None

        if state.is_refreshing:
            logger.debug("Fetch already in progress, skipping")
            return None

        if state.current_fetch is not None:
            state.current_fetch.cancel()

        epoch = state.next_fetch_epoch()
        state.refreshing_epoch = epoch.number
        logger.info(f"Starting fetch #{epoch.number} (auto={is_auto_refresh})")

        if is_auto_refresh:
            self.sink.show_refresh_status(True)
        else:
            self.sink.show_loading(True)

        epoch.task = asyncio.create_task(
            self._run_fetch(epoch, is_auto_refresh, state.filters)
        )
        try:
            return await epoch.task
        except asyncio.CancelledError:
            if not epoch.cancelled:
                # The caller itself was cancelled
                epoch.cancel()
                raise
            logger.info(f"Fetch #{epoch.number} was cancelled")
            return None
        except EpochSuperseded:
            logger.info(f"Fetch #{epoch.number} was superseded")
            return None
        except Exception as e:
            logger.error(f"Fetch #{epoch.number} failed: {e}", exc_info=settings.DEBUG_MODE)
            if state.current_fetch is epoch:
                self.sink.show_error(f"Failed to fetch pull requests: {e}")
            return None
        finally:
            if state.refreshing_epoch == epoch.number:
                state.refreshing_epoch = None
            if is_auto_refresh:
                self.sink.show_refresh_status(False)
            elif state.current_fetch is epoch:
                self.sink.show_loading(False)
            if state.current_fetch is epoch:
                state.current_fetch = None

    async def _run_fetch(
        self, epoch: FetchEpoch, is_auto_refresh: bool, filters_at_start: FilterState
    ) -> Optional[RenderFrame]:
        state = self.state

        user = await self.client.get_user()
        self._ensure_current(epoch)
        state.current_user = user
        login = user["login"]

        items = await self.client.search_pull_requests(f"involves:{login} is:pr is:open")
        self._ensure_current(epoch)

        candidates = [
            PullRequestSummary.from_search_item(item)
            for item in items
            if not (item.get("repository") or {}).get("archived", False)
        ]
        prs = await filter_by_merge_readiness(candidates, login, self.client, epoch)
        self._ensure_current(epoch)
        prs.sort(key=lambda pr: pr.updated_at, reverse=True)

        if state.filters != filters_at_start:
            logger.info(f"Filters changed during fetch #{epoch.number}, discarding results")
            return None

        serialized = serialize_pull_requests(prs)
        frame = None
        if is_auto_refresh and serialized == state.last_pr_data:
            logger.debug("Data unchanged, skipping display update")
        else:
            state.last_pr_data = serialized
            frame = await self.display(prs, epoch, is_auto_refresh)

        if (
            not is_auto_refresh
            and state.auto_refresh_enabled
            and state.visible
            and not self.auto_refresh_running
        ):
            self.start_auto_refresh()
        return frame

    def _ensure_current(self, epoch: FetchEpoch) -> None:
        if epoch.cancelled or self.state.current_fetch is not epoch:
            raise EpochSuperseded(epoch.number)

    def cancel_current_fetch(self) -> None:
        state = self.state
        epoch = state.current_fetch
        if epoch is None:
            return
        logger.info(f"Cancelling fetch #{epoch.number}")
        state.current_fetch = None
        if state.refreshing_epoch == epoch.number:
            state.refreshing_epoch = None
        epoch.cancel()

    # Rendering

    def _display_superseded(self, display_epoch: int, fetch_epoch: Optional[FetchEpoch]) -> bool:
        state = self.state
        if state.current_display != display_epoch:
            return True
        return fetch_epoch is not None and (
            fetch_epoch.cancelled or state.current_fetch is not fetch_epoch
        )

    def _emit(self, frame: RenderFrame) -> RenderFrame:
        self.state.frame = frame
        self.sink.render(frame)
        return frame

    async def _view_for(self, pr: PullRequestSummary, use_cache: bool) -> PullRequestView:
        cache = self.state.cache
        enrichment: Optional[PullRequestEnrichment] = cache.get(pr) if use_cache else None
        if enrichment is None:
            enrichment = await enrich(self.client, pr, self.rules)
            cache.put(pr, enrichment)
        else:
            logger.debug(f"Using cached data for {pr.repo}#{pr.number}")
        return build_view(pr, enrichment, self.auth_method)

    async def display(
        self,
        prs: Sequence[PullRequestSummary],
        fetch_epoch: Optional[FetchEpoch] = None,
        is_auto_refresh: bool = False,
    ) -> Optional[RenderFrame]:
        """
        Render `prs` row by row, emitting a frame after each enriched PR.

        Aborts without touching the displayed frame as soon as either this pass
        or its fetch is superseded. Auto-refresh passes reuse cached enrichment.
        """
        state = self.state
        display_epoch = state.next_display_epoch()
        fetch_number = fetch_epoch.number if fetch_epoch is not None else None
        try:
            if self._display_superseded(display_epoch, fetch_epoch):
                return None

            state.all_prs = list(prs)
            if not prs:
                if not is_auto_refresh:
                    self.sink.show_loading(False)
                return self._emit(
                    RenderFrame(
                        display_epoch=display_epoch,
                        fetch_epoch=fetch_number,
                        complete=True,
                        message=NO_PULL_REQUESTS,
                    )
                )

            filters = state.filters
            now = self._clock()
            visible = [pr for pr in prs if filters.matches(pr, now)]
            rows: List[PullRequestView] = []

            self._emit(
                RenderFrame(
                    display_epoch=display_epoch,
                    fetch_epoch=fetch_number,
                    total=len(visible),
                )
            )
            if not is_auto_refresh:
                self.sink.show_loading(False)

            for pr in visible:
                if self._display_superseded(display_epoch, fetch_epoch):
                    return None
                view = await self._view_for(pr, use_cache=is_auto_refresh)
                if self._display_superseded(display_epoch, fetch_epoch):
                    logger.debug(f"Display #{display_epoch} superseded, dropping {pr.repo}#{pr.number}")
                    return None
                rows.append(view)
                self._emit(
                    RenderFrame(
                        display_epoch=display_epoch,
                        fetch_epoch=fetch_number,
                        rows=list(rows),
                        processed=len(rows),
                        total=len(visible),
                    )
                )

            message = None
            if not rows:
                message = NO_MATCHING_PULL_REQUESTS if filters.is_active else NO_PULL_REQUESTS
            return self._emit(
                RenderFrame(
                    display_epoch=display_epoch,
                    fetch_epoch=fetch_number,
                    rows=rows,
                    processed=len(rows),
                    total=len(visible),
                    complete=True,
                    message=message,
                )
            )
        finally:
            if state.current_display == display_epoch:
                state.display_in_progress = False

    # Filters

    async def apply_filters(
        self, repo_query: Optional[str] = None, age_days: Optional[int] = None
    ) -> Optional[RenderFrame]:
        """Change filters and re-render the last fetched list without refetching."""
        state = self.state
        state.filters = FilterState.create(
            state.filters.repo_query if repo_query is None else repo_query,
            state.filters.age_days if age_days is None else age_days,
        )
        logger.info(f"Applying filters: {state.filters}")
        self.cancel_current_fetch()
        if state.all_prs is None:
            self.sink.show_loading(False)
            return None
        self.sink.show_loading(True)
        return await self.display(state.all_prs, None, False)

    # Periodic refresh

    @property
    def auto_refresh_running(self) -> bool:
        task = self._auto_refresh_task
        return task is not None and not task.done()

    def start_auto_refresh(self) -> None:
        self.stop_auto_refresh()
        if not self.state.auto_refresh_enabled:
            return
        interval = self.state.auto_refresh_interval
        logger.info(f"Auto-refresh started, every {interval}s")
        self._auto_refresh_task = asyncio.create_task(self._auto_refresh_loop(interval))

    def stop_auto_refresh(self) -> None:
        task = self._auto_refresh_task
        self._auto_refresh_task = None
        if task is None:
            return
        logger.info("Auto-refresh stopped")
        if not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _auto_refresh_loop(self, interval: float) -> None:
        me = asyncio.current_task()
        state = self.state
        while self._auto_refresh_task is me:
            await asyncio.sleep(interval)
            if self._auto_refresh_task is not me:
                break
            if state.visible and not state.is_refreshing and not state.display_in_progress:
                await self.fetch_pull_requests(is_auto_refresh=True)

    def set_auto_refresh(self, enabled: bool, interval: Optional[float] = None) -> None:
        if interval is not None:
            if interval <= 0:
                raise ValueError(f"Auto-refresh interval must be positive, got {interval}")
            self.state.auto_refresh_interval = interval
        self.state.auto_refresh_enabled = enabled
        if enabled and self.state.visible:
            self.start_auto_refresh()
        else:
            self.stop_auto_refresh()

    def set_visible(self, visible: bool) -> None:
        """Pause periodic refresh while hidden; resume the timer, without fetching, when shown."""
        self.state.visible = visible
        if not visible:
            self.stop_auto_refresh()
        elif self.state.auto_refresh_enabled:
            self.start_auto_refresh()

    # Restart CI

    async def restart_failed_checks(self, repo: str, number: int) -> Optional[RestartReport]:
        if self.auth_method != "token":
            self.sink.show_error(RESTART_REQUIRES_TOKEN)
            return None

        try:
            report = await restart.restart_failed_checks(self.client, repo, number)
        except GitHubError as e:
            logger.error(f"Error restarting checks for {repo}#{number}: {e}")
            self.sink.show_error(f"Failed to restart checks: {e}")
            return None

        if report.total == 0:
            self.sink.show_error(report.message)
            return report

        if not report.failures:
            self.sink.show_success(report.message)
        elif report.restarted == 0:
            self.sink.show_error(report.message)
        else:
            self.sink.show_warning(report.message)
        self._schedule_refresh(self.restart_refresh_delay)
        return report

    def _schedule_refresh(self, delay: float) -> None:
        task = asyncio.create_task(self._refresh_later(delay))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh_later(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.fetch_pull_requests(is_auto_refresh=False)

    async def aclose(self) -> None:
        pending = list(self._background)
        if self._auto_refresh_task is not None:
            pending.append(self._auto_refresh_task)
        self.stop_auto_refresh()
        self.cancel_current_fetch()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
