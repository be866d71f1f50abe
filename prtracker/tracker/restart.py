"""
Restart failed CI for one pull request.

Failed check runs are re-requested; failed or cancelled workflow runs are rerun,
falling back to re-running only their failed jobs. Each target is attempted
once, sequentially, and every failure is recorded with a reason derived from
the first attempt.
"""

from typing import Optional, Tuple

from prtracker.integrations.github.client import GitHubClient
from prtracker.integrations.github.exceptions import GitHubError, UpstreamError
from prtracker.models.check_signal import CheckSignal, PullRequestChecks, SignalKind
from prtracker.models.restart import RestartFailure, RestartFailureReason, RestartReport
from prtracker.tracker.enrichment import fetch_checks
from prtracker.utils.logger import logger


def classify_restart_failure(error: GitHubError) -> Tuple[RestartFailureReason, str]:
    if not isinstance(error, UpstreamError):
        return RestartFailureReason.NETWORK, "network error"

    if error.status_code == 403:
        return RestartFailureReason.PERMISSION, "insufficient permissions"
    if error.status_code == 422:
        body = error.json()
        message = body.get("message", "") if isinstance(body, dict) else ""
        if "running" in message.lower():
            return RestartFailureReason.RUNNING_JOBS, "jobs still running"
        return RestartFailureReason.NOT_RERUNNABLE, "cannot be rerun"
    if error.status_code == 404:
        return RestartFailureReason.NOT_FOUND, "not found or no access"
    return RestartFailureReason.HTTP_ERROR, f"HTTP {error.status_code}"


def _failure(signal: CheckSignal, error: GitHubError) -> RestartFailure:
    reason, message = classify_restart_failure(error)
    logger.warning(f"Failed to restart {signal.kind.value} {signal.name}: {message}")
    return RestartFailure(
        kind=signal.kind,
        name=signal.name,
        reason=reason,
        message=f"{signal.name} ({message})",
        status_code=getattr(error, "status_code", None),
    )


async def _restart_workflow(client: GitHubClient, repo: str, run_id: int) -> None:
    try:
        await client.rerun_workflow(repo, run_id)
        return
    except UpstreamError as e:
        first_error = e
    logger.info(f"Full rerun of workflow {run_id} refused, retrying failed jobs only")
    try:
        await client.rerun_failed_jobs(repo, run_id)
    except UpstreamError:
        raise first_error


async def restart_failed_checks(
    client: GitHubClient,
    repo: str,
    number: int,
    checks: Optional[PullRequestChecks] = None,
) -> RestartReport:
    if checks is None:
        checks = await fetch_checks(client, repo, number)

    failed_runs = [
        run
        for run in checks.of_kind(SignalKind.CHECK_RUN)
        if run.status == "completed" and run.conclusion == "failure"
    ]
    failed_workflows = [
        workflow
        for workflow in checks.of_kind(SignalKind.WORKFLOW_RUN)
        if workflow.status == "completed"
        and workflow.conclusion in ("failure", "cancelled")
    ]

    report = RestartReport(
        repo=repo, number=number, total=len(failed_runs) + len(failed_workflows)
    )
    logger.info(
        f"Restarting {len(failed_runs)} check runs and "
        f"{len(failed_workflows)} workflows for {repo}#{number}"
    )

    for run in failed_runs:
        try:
            await client.rerequest_check_run(repo, run.id)
            report.restarted += 1
        except GitHubError as e:
            report.failures.append(_failure(run, e))

    for workflow in failed_workflows:
        try:
            await _restart_workflow(client, repo, workflow.id)
            report.restarted += 1
        except GitHubError as e:
            report.failures.append(_failure(workflow, e))

    return report
