from typing import Optional

from prtracker.models.check_signal import AggregatedStatus
from prtracker.models.readiness import MergeReadiness

_BLOCKING_STATES = {
    "dirty": MergeReadiness.CONFLICTS,
    "blocked": MergeReadiness.BLOCKED,
    "behind": MergeReadiness.BEHIND,
}

_CI_READINESS = {
    AggregatedStatus.FAILURE: MergeReadiness.CI_FAILING,
    AggregatedStatus.PENDING: MergeReadiness.CI_PENDING,
}


def classify(
    mergeable: Optional[bool],
    mergeable_state: Optional[str],
    approvals: int,
    ci_status: AggregatedStatus,
) -> MergeReadiness:
    """Combine GitHub's mergeability, approvals and the CI verdict. First match wins."""
    if mergeable is True and approvals > 0 and ci_status == AggregatedStatus.SUCCESS:
        return MergeReadiness.MERGEABLE
    if mergeable is False:
        return _BLOCKING_STATES.get(mergeable_state or "", MergeReadiness.NOT_MERGEABLE)
    if mergeable is True and approvals == 0:
        return MergeReadiness.NEEDS_APPROVALS
    if mergeable is True:
        return _CI_READINESS.get(ci_status, MergeReadiness.CI_UNKNOWN)
    # GitHub is still computing mergeability
    return MergeReadiness.UNKNOWN
