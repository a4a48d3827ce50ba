"""Incident reporting."""

from datetime import date
from typing import Optional

from .calculations import DateLike, as_date
from .errors import RecordValidationError
from .records import Incident
from .session import Session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="incidents")

SEVERITIES = ("low", "medium", "high", "critical")


def report_incident(
    store,
    session: Session,
    incident_type: str,
    severity: str,
    description: str,
    incident_date: Optional[DateLike] = None,
    vehicle_id: Optional[str] = None,
    driver_id: Optional[str] = None,
    location: Optional[str] = None,
) -> Incident:
    if severity not in SEVERITIES:
        raise RecordValidationError(
            f"Invalid severity '{severity}' (expected one of: {', '.join(SEVERITIES)})"
        )
    if not description or not description.strip():
        raise RecordValidationError("A description is required")
    if vehicle_id:
        store.get(session, "vehicles", vehicle_id)

    incident = store.insert(session, "incidents", {
        "incident_type": incident_type,
        "severity": severity,
        "description": description.strip(),
        "incident_date": (as_date(incident_date) if incident_date else date.today()).isoformat(),
        "vehicle_id": vehicle_id,
        "driver_id": driver_id,
        "location": location,
        "status": "open",
        "reported_by": session.user_id,
    })
    if severity in ("high", "critical"):
        logger.warning("%s incident reported: %s", severity.capitalize(), incident_type)
    return incident
