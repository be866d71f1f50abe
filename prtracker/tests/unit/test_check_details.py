from datetime import datetime, timezone

from prtracker.models.check_signal import AggregatedStatus, PullRequestChecks
from prtracker.status.aggregator import normalize
from prtracker.status.check_details import (
    details_url,
    failure_details,
    format_duration,
    running_details,
)


def checks_for(check_runs=None, statuses=None, workflows=None, status=AggregatedStatus.FAILURE):
    return PullRequestChecks(status=status, signals=normalize(check_runs, statuses, workflows))


def test_format_duration():
    start = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)
    assert format_duration(start, start.replace(second=42)) == "42s"
    assert format_duration(start, start.replace(minute=3)) == "3m"
    assert format_duration(start, start.replace(minute=3, second=5)) == "3m 5s"
    assert format_duration(None, start) == "unknown duration"


def test_failure_details_cover_all_sources():
    checks = checks_for(
        check_runs=[
            {"name": "build", "status": "completed", "conclusion": "failure", "output": {}},
            {"name": "test", "status": "completed", "conclusion": "success"},
        ],
        statuses=[{"context": "ci/jenkins", "state": "error", "description": "Boom"}],
        workflows=[
            {
                "name": "CI",
                "status": "completed",
                "conclusion": "failure",
                "created_at": "2024-05-01T10:00:00Z",
                "updated_at": "2024-05-01T10:02:00Z",
                "event": "push",
            }
        ],
    )

    details = failure_details(checks)

    assert [d.name for d in details] == ["build", "ci/jenkins", "CI"]
    assert details[0].summary == "No summary available"
    assert details[1].summary == "Boom"
    assert details[2].summary == 'Workflow "CI" failed'
    assert details[2].duration == "2m"


def test_higher_priority_cancellations_are_not_failures():
    checks = checks_for(
        workflows=[
            {
                "name": "CI",
                "status": "completed",
                "conclusion": "cancelled",
                "display_title": "Canceling since a higher priority waiting request exists",
            },
            {"name": "Nightly", "status": "completed", "conclusion": "cancelled"},
        ]
    )

    details = failure_details(checks)

    assert [d.name for d in details] == ["Nightly"]
    assert details[0].summary == "Workflow was cancelled"


def test_running_details():
    now = datetime(2024, 5, 1, 10, 1, 30, tzinfo=timezone.utc)
    checks = checks_for(
        check_runs=[{"name": "build", "status": "queued", "conclusion": None}],
        workflows=[
            {
                "name": "CI",
                "status": "in_progress",
                "created_at": "2024-05-01T10:00:00Z",
                "event": "pull_request",
            }
        ],
        status=AggregatedStatus.PENDING,
    )

    details = running_details(checks, now=now)

    assert details[0].summary == "Queued and waiting to start"
    assert details[1].summary == "Running for 1m 30s (triggered by pull_request)"


def test_details_url_prefers_failed_workflow():
    checks = checks_for(
        workflows=[
            {
                "name": "CI",
                "status": "completed",
                "conclusion": "failure",
                "html_url": "https://github.com/octo/app/actions/runs/9",
            }
        ]
    )
    assert details_url("octo/app", 3, checks) == "https://github.com/octo/app/actions/runs/9"


def test_details_url_defaults_to_checks_tab():
    checks = checks_for(status=AggregatedStatus.SUCCESS)
    assert details_url("octo/app", 3, checks) == "https://github.com/octo/app/pull/3/checks"
