"""Rail replacement services: listing and fleet commitment summary."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .records import RailReplacementService
from .session import Session


@dataclass
class RailSummary:
    total: int
    active: int
    completed: int
    cancelled: int
    vehicles_required: int
    vehicles_assigned: int
    passengers_affected: int
    estimated_cost: float
    actual_cost: float
    revenue: float
    by_status: Dict[str, int] = field(default_factory=dict)
    by_type: Dict[str, int] = field(default_factory=dict)
    by_priority: Dict[str, int] = field(default_factory=dict)

    @property
    def vehicle_shortfall(self) -> int:
        """Vehicles still to be assigned (never negative)."""
        return max(self.vehicles_required - self.vehicles_assigned, 0)


def list_services(
    store,
    session: Session,
    status: Optional[str] = None,
    service_type: Optional[str] = None,
    priority: Optional[str] = None,
) -> List[RailReplacementService]:
    """Services for the organization, newest first, optionally filtered."""
    filters = {}
    if status:
        filters["status"] = status
    if service_type:
        filters["service_type"] = service_type
    if priority:
        filters["priority"] = priority
    return store.select(
        session, "rail_replacement_services",
        filters=filters, order_by="created_at", descending=True,
    )


def _count_by(services, attr: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for s in services:
        key = getattr(s, attr)
        counts[key] = counts.get(key, 0) + 1
    return counts


def rail_summary(services: Iterable[RailReplacementService]) -> RailSummary:
    services = list(services)
    by_status = _count_by(services, "status")
    return RailSummary(
        total=len(services),
        active=by_status.get("active", 0),
        completed=by_status.get("completed", 0),
        cancelled=by_status.get("cancelled", 0),
        vehicles_required=sum(s.vehicles_required or 0 for s in services),
        vehicles_assigned=sum(s.vehicles_assigned or 0 for s in services),
        passengers_affected=sum(s.passengers_affected or 0 for s in services),
        estimated_cost=round(sum(s.estimated_cost or 0 for s in services), 2),
        actual_cost=round(sum(s.actual_cost or 0 for s in services), 2),
        revenue=round(sum(s.revenue or 0 for s in services), 2),
        by_status=by_status,
        by_type=_count_by(services, "service_type"),
        by_priority=_count_by(services, "priority"),
    )
