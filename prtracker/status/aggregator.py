"""
Status aggregation across GitHub's three CI signal sources.

Check runs, commit statuses and workflow runs use different state
vocabularies and are updated independently by GitHub. They are normalized into
CheckSignal records and reduced to one AggregatedStatus:

1. no signals at all -> unknown
2. only required signals are evaluated, unless none are required, in which
   case every signal is evaluated
3. any failure-class state -> failure, else any in-flight state -> pending,
   else all success-class states -> success, else unknown
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

from prtracker.models.check_signal import AggregatedStatus, CheckSignal, SignalKind
from prtracker.status.required_checks import RequiredCheckRules, default_rules
from prtracker.utils.logger import logger

FAILURE_STATES = frozenset({"failure", "error", "cancelled", "timed_out"})
PENDING_STATES = frozenset({"pending", "in_progress", "queued"})
SUCCESS_STATES = frozenset({"success", "neutral", "skipped"})

RawRecords = Optional[Iterable[Dict[str, Any]]]


def _effective_state(status: Optional[str], conclusion: Optional[str]) -> Optional[str]:
    return conclusion if status == "completed" else status


def signal_from_check_run(
    run: Dict[str, Any], rules: RequiredCheckRules = default_rules
) -> CheckSignal:
    name = run.get("name") or ""
    return CheckSignal(
        kind=SignalKind.CHECK_RUN,
        name=name,
        state=_effective_state(run.get("status"), run.get("conclusion")),
        status=run.get("status"),
        conclusion=run.get("conclusion"),
        required=rules.is_required(name, SignalKind.CHECK_RUN.value),
        id=run.get("id"),
        html_url=run.get("html_url"),
        summary=(run.get("output") or {}).get("summary"),
        started_at=run.get("started_at"),
        completed_at=run.get("completed_at"),
    )


def signal_from_commit_status(
    status: Dict[str, Any], rules: RequiredCheckRules = default_rules
) -> CheckSignal:
    name = status.get("context") or ""
    state = status.get("state")
    return CheckSignal(
        kind=SignalKind.STATUS,
        name=name,
        state=state,
        status=state,
        conclusion=state,
        required=rules.is_required(name, SignalKind.STATUS.value),
        id=status.get("id"),
        html_url=status.get("target_url"),
        summary=status.get("description"),
        started_at=status.get("created_at"),
        completed_at=status.get("updated_at"),
    )


def signal_from_workflow_run(
    workflow: Dict[str, Any], rules: RequiredCheckRules = default_rules
) -> CheckSignal:
    name = workflow.get("name") or ""
    return CheckSignal(
        kind=SignalKind.WORKFLOW_RUN,
        name=name,
        state=_effective_state(workflow.get("status"), workflow.get("conclusion")),
        status=workflow.get("status"),
        conclusion=workflow.get("conclusion"),
        required=rules.is_required(name, SignalKind.WORKFLOW_RUN.value),
        id=workflow.get("id"),
        html_url=workflow.get("html_url"),
        event=workflow.get("event"),
        display_title=workflow.get("display_title"),
        started_at=workflow.get("created_at"),
        completed_at=workflow.get("updated_at"),
    )


def normalize(
    check_runs: RawRecords = None,
    commit_statuses: RawRecords = None,
    workflow_runs: RawRecords = None,
    rules: RequiredCheckRules = default_rules,
) -> List[CheckSignal]:
    """Flatten raw GitHub payload records into one list of signals."""
    signals = [signal_from_check_run(run, rules) for run in check_runs or []]
    signals += [signal_from_commit_status(s, rules) for s in commit_statuses or []]
    signals += [signal_from_workflow_run(w, rules) for w in workflow_runs or []]
    return signals


def reduce_states(states: Sequence[Optional[str]]) -> AggregatedStatus:
    """Reduce raw states with failure > pending > success priority."""
    if not states:
        return AggregatedStatus.UNKNOWN
    state_set = set(states)
    if state_set & FAILURE_STATES:
        return AggregatedStatus.FAILURE
    if state_set & PENDING_STATES:
        return AggregatedStatus.PENDING
    if state_set <= SUCCESS_STATES:
        return AggregatedStatus.SUCCESS
    return AggregatedStatus.UNKNOWN


def aggregate_signals(signals: Sequence[CheckSignal]) -> AggregatedStatus:
    if not signals:
        return AggregatedStatus.UNKNOWN

    required = [signal for signal in signals if signal.required]
    # Everything optional: evaluate the full set rather than report unknown.
    to_evaluate = required or list(signals)

    logger.debug(
        f"Evaluating {len(to_evaluate)} required checks out of {len(signals)} total checks"
    )
    return reduce_states([signal.state for signal in to_evaluate])


def aggregate(
    check_runs: RawRecords = None,
    commit_statuses: RawRecords = None,
    workflow_runs: RawRecords = None,
    rules: RequiredCheckRules = default_rules,
) -> AggregatedStatus:
    """Combine check runs, commit statuses and workflow runs into one verdict."""
    return aggregate_signals(normalize(check_runs, commit_statuses, workflow_runs, rules))
