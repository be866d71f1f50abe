from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from prtracker.models.review import ReviewSummary

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _submitted_at(review: Dict[str, Any]) -> datetime:
    value: Optional[str] = review.get("submitted_at")
    if not value:
        return _EPOCH
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def summarize_reviews(reviews: Iterable[Dict[str, Any]]) -> ReviewSummary:
    """
    Count approvals among the most recent review of each reviewer.

    A reviewer who approved and later requested changes no longer counts as an
    approval. Reviews from deleted accounts (no user) are ignored.
    """
    latest: Dict[str, Dict[str, Any]] = {}
    for review in reviews:
        login = (review.get("user") or {}).get("login")
        if not login:
            continue
        current = latest.get(login)
        if current is None or _submitted_at(review) > _submitted_at(current):
            latest[login] = review

    approvals = sum(1 for review in latest.values() if review.get("state") == "APPROVED")
    return ReviewSummary(approvals=approvals, total=len(latest))
