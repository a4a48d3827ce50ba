"""Fuel purchases and spend summaries."""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, Optional

from .calculations import DateLike, as_date
from .errors import RecordValidationError
from .records import FuelPurchase
from .session import Session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="fuel")

FUEL_TYPES = ("diesel", "petrol", "electric")


@dataclass
class FuelSummary:
    purchases: int
    total_quantity: float
    total_spend: float
    average_unit_price: float
    by_fuel_type: Dict[str, Dict[str, float]] = field(default_factory=dict)
    by_vehicle: Dict[str, float] = field(default_factory=dict)


def _positive_number(value, label: str) -> float:
    if isinstance(value, bool):
        raise RecordValidationError(f"{label} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise RecordValidationError(f"{label} must be a number") from exc
    if not math.isfinite(number):
        raise RecordValidationError(f"{label} must be a number")
    if number <= 0:
        raise RecordValidationError(f"{label} must be greater than zero")
    return number


def record_fuel_purchase(
    store,
    session: Session,
    vehicle_id: str,
    fuel_type: str,
    quantity: float,
    unit_price: float,
    purchase_date: Optional[DateLike] = None,
    total_cost: Optional[float] = None,
    driver_id: Optional[str] = None,
    location: Optional[str] = None,
    odometer_reading: Optional[float] = None,
    notes: Optional[str] = None,
) -> FuelPurchase:
    """
    Log a fuel purchase against a vehicle.

    Total cost defaults to quantity x unit price. A higher odometer reading
    also moves the vehicle's current mileage forward.
    """
    if fuel_type not in FUEL_TYPES:
        raise RecordValidationError(f"Invalid fuel type '{fuel_type}'")
    quantity = _positive_number(quantity, "Quantity")
    unit_price = _positive_number(unit_price, "Unit price")

    vehicle = store.get(session, "vehicles", vehicle_id)
    if total_cost is None:
        total_cost = round(quantity * unit_price, 2)

    purchase = store.insert(session, "fuel_purchases", {
        "vehicle_id": vehicle.id,
        "driver_id": driver_id or (session.user_id if session.role == "driver" else None),
        "fuel_type": fuel_type,
        "quantity": quantity,
        "unit_price": unit_price,
        "total_cost": total_cost,
        "purchase_date": (as_date(purchase_date) if purchase_date else date.today()).isoformat(),
        "location": location,
        "odometer_reading": odometer_reading,
        "notes": notes,
    })

    if odometer_reading is not None and odometer_reading > (vehicle.current_mileage or 0):
        store.update(session, "vehicles", vehicle.id, {"current_mileage": odometer_reading})

    logger.info("Fuel purchase %.2f for %s", total_cost, vehicle.vehicle_number)
    return purchase


def fuel_summary(purchases: Iterable[FuelPurchase]) -> FuelSummary:
    purchases = list(purchases)
    total_quantity = sum(p.quantity for p in purchases)
    total_spend = sum(p.total_cost for p in purchases)

    by_fuel_type: Dict[str, Dict[str, float]] = {}
    by_vehicle: Dict[str, float] = {}
    for p in purchases:
        bucket = by_fuel_type.setdefault(p.fuel_type, {"quantity": 0.0, "spend": 0.0})
        bucket["quantity"] = round(bucket["quantity"] + p.quantity, 2)
        bucket["spend"] = round(bucket["spend"] + p.total_cost, 2)
        by_vehicle[p.vehicle_id] = round(by_vehicle.get(p.vehicle_id, 0.0) + p.total_cost, 2)

    return FuelSummary(
        purchases=len(purchases),
        total_quantity=round(total_quantity, 2),
        total_spend=round(total_spend, 2),
        average_unit_price=round(total_spend / total_quantity, 3) if total_quantity else 0.0,
        by_fuel_type=by_fuel_type,
        by_vehicle=by_vehicle,
    )
