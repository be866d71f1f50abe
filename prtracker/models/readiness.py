import enum


class MergeReadiness(enum.Enum):
    """User-facing merge state of a pull request."""

    MERGEABLE = "mergeable"
    CONFLICTS = "conflicts"
    BLOCKED = "blocked"
    BEHIND = "behind"
    NOT_MERGEABLE = "not-mergeable"
    NEEDS_APPROVALS = "needs-approvals"
    CI_FAILING = "ci-failing"
    CI_PENDING = "ci-pending"
    CI_UNKNOWN = "ci-unknown"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return _LABELS[self][0]

    @property
    def description(self) -> str:
        return _LABELS[self][1]


_LABELS = {
    MergeReadiness.MERGEABLE: (
        "Mergeable",
        "Ready to merge - has approvals and CI passed",
    ),
    MergeReadiness.CONFLICTS: ("Conflicts", "Merge conflicts"),
    MergeReadiness.BLOCKED: ("Blocked", "Blocked by required status checks"),
    MergeReadiness.BEHIND: ("Behind", "Behind base branch"),
    MergeReadiness.NOT_MERGEABLE: ("Not mergeable", "Not mergeable"),
    MergeReadiness.NEEDS_APPROVALS: ("Needs approvals", "Needs approvals"),
    MergeReadiness.CI_FAILING: ("CI failing", "CI checks failing"),
    MergeReadiness.CI_PENDING: ("CI running", "CI checks running"),
    MergeReadiness.CI_UNKNOWN: ("CI unknown", "CI status unknown"),
    MergeReadiness.UNKNOWN: ("Checking...", "Merge status unknown"),
}
