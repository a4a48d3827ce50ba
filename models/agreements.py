"""Terms of service / privacy policy versions and their acceptances."""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from .calculations import DateLike, as_date
from .errors import RecordValidationError
from .records import Agreement, AgreementAcceptance
from .session import Session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="agreements")

AGREEMENT_TYPES = ("terms_of_service", "privacy_policy")


@dataclass
class AgreementAnalytics:
    total_users: int
    accepted_terms: int
    accepted_privacy: int
    pending: int
    recent: List[AgreementAcceptance] = field(default_factory=list)

    @property
    def terms_rate(self) -> int:
        return _percent(self.accepted_terms, self.total_users)

    @property
    def privacy_rate(self) -> int:
        return _percent(self.accepted_privacy, self.total_users)


def _percent(part: int, whole: int) -> int:
    if not whole:
        return 0
    return math.floor(part * 100 / whole + 0.5)


def publish_agreement(
    store,
    session: Session,
    agreement_type: str,
    version: str,
    title: str,
    content: str,
    effective_date: Optional[DateLike] = None,
) -> Agreement:
    """
    Publish a new agreement version.

    Earlier active versions of the same type are deactivated so exactly one
    version per type is active.
    """
    session.require_role(("admin", "council"))
    if agreement_type not in AGREEMENT_TYPES:
        raise RecordValidationError(f"Invalid agreement type '{agreement_type}'")
    if not (version and title and content):
        raise RecordValidationError("Version, title and content are required")

    for old in store.select(
        session, "agreements", filters={"agreement_type": agreement_type, "is_active": True}
    ):
        store.update(session, "agreements", old.id, {"is_active": False})

    agreement = store.insert(session, "agreements", {
        "agreement_type": agreement_type,
        "version": version,
        "title": title,
        "content": content,
        "is_active": True,
        "effective_date": (as_date(effective_date) if effective_date else date.today()).isoformat(),
    })
    logger.info("Published %s version %s", agreement_type, version)
    return agreement


def accept_agreement(
    store, session: Session, agreement_id: str, now: Optional[datetime] = None
) -> AgreementAcceptance:
    """Record that the session user accepted an agreement (idempotent)."""
    agreement = store.get(session, "agreements", agreement_id)
    if not agreement.is_active:
        raise RecordValidationError(f"Agreement version {agreement.version} is no longer active")

    existing = store.select(
        session, "agreement_acceptances",
        filters={"agreement_id": agreement.id, "user_id": session.user_id},
    )
    if existing:
        return existing[0]

    now = now or datetime.now(timezone.utc)
    return store.insert(session, "agreement_acceptances", {
        "agreement_id": agreement.id,
        "user_id": session.user_id,
        "accepted_at": now.isoformat(timespec="seconds"),
    })


def agreement_analytics(
    agreements: Iterable[Agreement],
    acceptances: Iterable[AgreementAcceptance],
    total_users: int,
    recent_limit: int = 10,
) -> AgreementAnalytics:
    """
    Acceptance counts against the currently active versions.

    ``pending`` is total_users minus the smaller of the two acceptance counts
    (terms, privacy), floored at zero. It is not a per-user intersection.
    """
    active = {a.id: a.agreement_type for a in agreements if a.is_active}
    acceptances = list(acceptances)

    terms_users = {x.user_id for x in acceptances if active.get(x.agreement_id) == "terms_of_service"}
    privacy_users = {x.user_id for x in acceptances if active.get(x.agreement_id) == "privacy_policy"}

    recent = sorted(acceptances, key=lambda x: x.accepted_at, reverse=True)[:recent_limit]
    return AgreementAnalytics(
        total_users=total_users,
        accepted_terms=len(terms_users),
        accepted_privacy=len(privacy_users),
        pending=max(total_users - min(len(terms_users), len(privacy_users)), 0),
        recent=recent,
    )
