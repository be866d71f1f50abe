"""Failure and in-progress details extracted from a pull request's CI signals."""

import re
from datetime import datetime, timezone
from typing import List, Optional

from prtracker.models.check_signal import (
    AggregatedStatus,
    CheckSignal,
    PullRequestChecks,
    SignalKind,
)
from prtracker.models.render_frame import CheckDetail

RUNNING_STATUSES = frozenset({"in_progress", "queued", "pending"})

HIGHER_PRIORITY_CANCEL = re.compile(
    r"canceling since a higher priority.*request.*exists", re.IGNORECASE
)


def format_duration(start: Optional[datetime], end: Optional[datetime]) -> str:
    if start is None or end is None:
        return "unknown duration"
    total_seconds = int((end - start).total_seconds())
    minutes, seconds = divmod(max(total_seconds, 0), 60)
    if minutes > 0:
        return f"{minutes}m {seconds}s" if seconds > 0 else f"{minutes}m"
    return f"{seconds}s"


def is_cancelled_for_higher_priority(workflow: CheckSignal) -> bool:
    """Concurrency-group cancellations are superseded runs, not failures."""
    for text in (workflow.display_title, workflow.name):
        if text and HIGHER_PRIORITY_CANCEL.search(text):
            return True
    return False


def failure_details(checks: PullRequestChecks) -> List[CheckDetail]:
    details = []
    for run in checks.of_kind(SignalKind.CHECK_RUN):
        if run.conclusion == "failure":
            details.append(
                CheckDetail(
                    kind=run.kind,
                    name=run.name,
                    summary=run.summary or "No summary available",
                    url=run.html_url,
                    conclusion=run.conclusion,
                )
            )

    for status in checks.of_kind(SignalKind.STATUS):
        if status.state in ("failure", "error"):
            details.append(
                CheckDetail(
                    kind=status.kind,
                    name=status.name,
                    summary=status.summary or "No description available",
                    url=status.html_url,
                    conclusion=status.state,
                )
            )

    for workflow in checks.of_kind(SignalKind.WORKFLOW_RUN):
        if workflow.conclusion not in ("failure", "cancelled"):
            continue
        if workflow.conclusion == "cancelled" and is_cancelled_for_higher_priority(workflow):
            continue
        if workflow.conclusion == "cancelled":
            summary = "Workflow was cancelled"
        else:
            summary = f'Workflow "{workflow.name}" failed'
        details.append(
            CheckDetail(
                kind=workflow.kind,
                name=workflow.name,
                summary=summary,
                url=workflow.html_url,
                conclusion=workflow.conclusion,
                duration=format_duration(workflow.started_at, workflow.completed_at),
                event=workflow.event,
            )
        )
    return details


def running_details(
    checks: PullRequestChecks, now: Optional[datetime] = None
) -> List[CheckDetail]:
    now = now or datetime.now(timezone.utc)
    details = []
    for run in checks.of_kind(SignalKind.CHECK_RUN):
        if run.status not in RUNNING_STATUSES:
            continue
        summary = {
            "in_progress": "Currently running...",
            "queued": "Queued and waiting to start",
            "pending": "Pending execution",
        }[run.status]
        details.append(
            CheckDetail(
                kind=run.kind,
                name=run.name,
                summary=summary,
                url=run.html_url,
                status=run.status,
            )
        )

    for workflow in checks.of_kind(SignalKind.WORKFLOW_RUN):
        if workflow.status not in RUNNING_STATUSES:
            continue
        if workflow.status == "in_progress":
            summary = f"Running for {format_duration(workflow.started_at, now)}"
        elif workflow.status == "queued":
            summary = "Queued and waiting to start"
        else:
            summary = "Pending execution"
        if workflow.event:
            summary += f" (triggered by {workflow.event})"
        details.append(
            CheckDetail(
                kind=workflow.kind,
                name=workflow.name,
                summary=summary,
                url=workflow.html_url,
                status=workflow.status,
                event=workflow.event,
            )
        )
    return details


def details_url(repo: str, number: int, checks: PullRequestChecks) -> str:
    url = f"https://github.com/{repo}/pull/{number}/checks"
    if checks.status == AggregatedStatus.FAILURE:
        for workflow in checks.of_kind(SignalKind.WORKFLOW_RUN):
            if workflow.conclusion == "failure" and workflow.html_url:
                return workflow.html_url
    return url
