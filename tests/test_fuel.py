#!/usr/bin/env python3
"""Tests for fuel purchase logging and summaries."""

import pytest

from models import RecordNotFound, RecordValidationError, Session
from models.fuel import fuel_summary, record_fuel_purchase
from models.records import FuelPurchase

from conftest import ORG


def make_purchase(vehicle_id="v1", fuel_type="diesel", quantity=40.0, total_cost=60.0):
    return FuelPurchase(
        id="f",
        organization_id=ORG,
        vehicle_id=vehicle_id,
        fuel_type=fuel_type,
        quantity=quantity,
        unit_price=round(total_cost / quantity, 3),
        total_cost=total_cost,
        purchase_date="2025-01-10",
    )


class TestRecordFuelPurchase:
    """Tests for record_fuel_purchase."""

    def test_total_defaults_to_quantity_times_price(self, store, session, vehicle):
        purchase = record_fuel_purchase(
            store, session, vehicle.id, "diesel", 40, 1.5, purchase_date="2025-01-10"
        )
        assert purchase.total_cost == 60.0
        assert purchase.purchase_date == "2025-01-10"
        assert purchase.driver_id is None

    def test_explicit_total_kept(self, store, session, vehicle):
        purchase = record_fuel_purchase(store, session, vehicle.id, "diesel", 40, 1.5, total_cost=58.5)
        assert purchase.total_cost == 58.5

    def test_numeric_strings_accepted(self, store, session, vehicle):
        purchase = record_fuel_purchase(store, session, vehicle.id, "diesel", "40", "1.5")
        assert purchase.quantity == 40.0
        assert purchase.total_cost == 60.0

    def test_driver_defaults_to_driver_session(self, store, vehicle):
        driver = Session(user_id="drv-9", organization_id=ORG, role="driver")
        purchase = record_fuel_purchase(store, driver, vehicle.id, "petrol", 10, 1.4)
        assert purchase.driver_id == "drv-9"

    def test_odometer_moves_mileage_forward(self, store, session, vehicle):
        record_fuel_purchase(store, session, vehicle.id, "diesel", 40, 1.5, odometer_reading=120500)
        assert store.get(session, "vehicles", vehicle.id).current_mileage == 120500

        record_fuel_purchase(store, session, vehicle.id, "diesel", 40, 1.5, odometer_reading=90000)
        assert store.get(session, "vehicles", vehicle.id).current_mileage == 120500

    @pytest.mark.parametrize(
        "fuel_type,quantity,price",
        [
            ("lpg", 10, 1.0), ("diesel", 0, 1.0), ("diesel", 10, -1.0),
            ("diesel", "lots", 1.0), ("diesel", None, 1.0), ("diesel", True, 1.0),
            ("diesel", 10, "nan"), ("diesel", 10, "free"),
        ],
    )
    def test_invalid_input(self, store, session, vehicle, fuel_type, quantity, price):
        with pytest.raises(RecordValidationError):
            record_fuel_purchase(store, session, vehicle.id, fuel_type, quantity, price)
        assert store.select(session, "fuel_purchases") == []

    def test_unknown_vehicle(self, store, session):
        with pytest.raises(RecordNotFound):
            record_fuel_purchase(store, session, "missing", "diesel", 10, 1.5)


class TestFuelSummary:
    """Tests for fuel_summary."""

    def test_empty(self):
        summary = fuel_summary([])
        assert summary.purchases == 0
        assert summary.total_spend == 0
        assert summary.average_unit_price == 0.0

    def test_totals(self):
        summary = fuel_summary([
            make_purchase("v1", "diesel", 40.0, 60.0),
            make_purchase("v2", "diesel", 20.0, 25.0),
            make_purchase("v1", "electric", 30.0, 9.0),
        ])
        assert summary.purchases == 3
        assert summary.total_quantity == 90.0
        assert summary.total_spend == 94.0
        assert summary.average_unit_price == 1.044
        assert summary.by_fuel_type["diesel"] == {"quantity": 60.0, "spend": 85.0}
        assert summary.by_vehicle == {"v1": 69.0, "v2": 25.0}
