"""Off-road (ORV) declarations and back-on-road (BOR) returns."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .calculations import DateLike, as_date
from .errors import RecordValidationError
from .records import BorReturn, OrvDeclaration
from .session import Session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="orv")

DECLARATION_TYPES = ("planned", "unplanned")


@dataclass
class BorChecklist:
    """What was confirmed before putting a vehicle back on the road."""

    inspection_required: bool = True
    inspection_completed: bool = False
    roadworthiness_check: bool = False
    authorized_by: Optional[str] = None
    notes: Optional[str] = None

    @property
    def complete(self) -> bool:
        if self.inspection_required and not self.inspection_completed:
            return False
        return self.roadworthiness_check


def declare_off_road(
    store,
    session: Session,
    vehicle_id: str,
    reason: str,
    expected_return_date: DateLike,
    declaration_type: str = "planned",
    responsible_party: Optional[str] = None,
    start_date: Optional[DateLike] = None,
) -> OrvDeclaration:
    """
    Take a vehicle off the road.

    A vehicle may have only one active declaration at a time.
    """
    if declaration_type not in DECLARATION_TYPES:
        raise RecordValidationError(f"Invalid declaration type '{declaration_type}'")
    if not reason or not reason.strip():
        raise RecordValidationError("A reason is required")

    start = as_date(start_date) if start_date else date.today()
    expected = as_date(expected_return_date)
    if expected < start:
        raise RecordValidationError("Expected return date is before the start date")

    vehicle = store.get(session, "vehicles", vehicle_id)
    active = store.select(
        session, "orv_declarations", filters={"vehicle_id": vehicle.id, "status": "active"}
    )
    if active:
        raise RecordValidationError(
            f"Vehicle {vehicle.vehicle_number} already has an active off-road declaration"
        )

    declaration = store.insert(session, "orv_declarations", {
        "vehicle_id": vehicle.id,
        "declaration_type": declaration_type,
        "reason": reason.strip(),
        "start_date": start.isoformat(),
        "expected_return_date": expected.isoformat(),
        "responsible_party": responsible_party,
        "status": "active",
    })
    store.update(session, "vehicles", vehicle.id, {"status": "off_road"})
    logger.info("Vehicle %s declared off road until %s", vehicle.vehicle_number, expected)
    return declaration


def return_to_road(
    store,
    session: Session,
    orv_id: str,
    checklist: BorChecklist,
    return_date: Optional[DateLike] = None,
) -> BorReturn:
    """
    Record a back-on-road return against an off-road declaration.

    A complete checklist marks the return completed, the declaration returned
    and the vehicle active again. Otherwise the return is recorded as failed
    and the vehicle stays off road.
    """
    declaration = store.get(session, "orv_declarations", orv_id)
    if declaration.status == "returned":
        raise RecordValidationError("Vehicle has already been returned to the road")

    returned_on = as_date(return_date) if return_date else date.today()
    status = "completed" if checklist.complete else "failed"

    bor = store.insert(session, "bor_returns", {
        "vehicle_id": declaration.vehicle_id,
        "orv_id": declaration.id,
        "return_date": returned_on.isoformat(),
        "inspection_required": checklist.inspection_required,
        "inspection_completed": checklist.inspection_completed,
        "roadworthiness_check": checklist.roadworthiness_check,
        "authorized_by": checklist.authorized_by or session.user_id,
        "status": status,
        "notes": checklist.notes,
    })

    if checklist.complete:
        store.update(session, "orv_declarations", declaration.id, {"status": "returned"})
        store.update(session, "vehicles", declaration.vehicle_id, {"status": "active"})
        logger.info("Vehicle %s back on road", declaration.vehicle_id)
    else:
        logger.warning("BOR checklist incomplete for vehicle %s", declaration.vehicle_id)
    return bor
