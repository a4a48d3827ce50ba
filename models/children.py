"""Child transport profiles and their risk assessments."""

from typing import List, Optional

from .calculations import DEFAULT_WARNING_DAYS, DateLike, ExpiryCheck, classify_expiry
from .errors import PermissionDenied
from .records import ChildProfile, RiskAssessment
from .session import Session


def risk_review_status(
    assessment: RiskAssessment,
    today: Optional[DateLike] = None,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> Optional[ExpiryCheck]:
    """Review date classified like any expiry; None when no review is set."""
    if not assessment.review_date:
        return None
    return classify_expiry(assessment.review_date, today, warning_days)


def get_child(store, session: Session, child_id: str) -> ChildProfile:
    """Fetch a child profile; parents only see their own children."""
    child = store.get(session, "child_profiles", child_id)
    if session.role == "parent" and child.parent_id != session.user_id:
        raise PermissionDenied("Parents may only view their own children")
    return child


def active_risk_assessments(store, session: Session, child_id: str) -> List[RiskAssessment]:
    """Active assessments for a child, most recent first."""
    child = get_child(store, session, child_id)
    return store.select(
        session, "risk_assessments",
        filters={"child_id": child.id, "is_active": True},
        order_by="assessment_date", descending=True,
    )
