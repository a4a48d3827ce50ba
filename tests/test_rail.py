#!/usr/bin/env python3
"""Tests for rail replacement listings and summaries."""

import itertools

import pytest

from models import FleetStore
from models.rail import list_services, rail_summary

from conftest import ORG


@pytest.fixture
def ticking_store(tmp_path):
    """Store whose clock advances a minute per write."""
    minutes = itertools.count()
    fleet_store = FleetStore(
        tmp_path / "rail", clock=lambda: f"2025-01-15T09:{next(minutes):02d}:00+00:00"
    )
    fleet_store.create_organization(ORG, "Acme Transport")
    return fleet_store


def add_service(store, session, name, **values):
    row = {
        "service_name": name,
        "affected_line": "Brighton Main Line",
        "service_type": "planned",
        "start_date": "2025-01-18",
        "end_date": "2025-01-19",
        **values,
    }
    return store.insert(session, "rail_replacement_services", row)


class TestListServices:
    """Tests for list_services."""

    def test_newest_first(self, ticking_store, session):
        add_service(ticking_store, session, "First")
        add_service(ticking_store, session, "Second")
        add_service(ticking_store, session, "Third")

        names = [s.service_name for s in list_services(ticking_store, session)]
        assert names == ["Third", "Second", "First"]

    def test_filters(self, ticking_store, session):
        add_service(ticking_store, session, "Weekend works", status="active", priority="high")
        add_service(ticking_store, session, "Storm", service_type="weather", status="active")
        add_service(ticking_store, session, "Done", status="completed")

        assert [s.service_name for s in list_services(ticking_store, session, status="active")] == [
            "Storm", "Weekend works",
        ]
        assert [s.service_name for s in list_services(ticking_store, session, service_type="weather")] == ["Storm"]
        assert [s.service_name for s in list_services(ticking_store, session, priority="high")] == [
            "Weekend works"
        ]


class TestRailSummary:
    """Tests for rail_summary."""

    def test_totals(self, store, session):
        services = [
            add_service(store, session, "A", status="active", vehicles_required=6, vehicles_assigned=4,
                        passengers_affected=1200, estimated_cost=5000.0, revenue=800.0),
            add_service(store, session, "B", status="completed", service_type="emergency",
                        vehicles_required=2, vehicles_assigned=2, actual_cost=1500.5),
            add_service(store, session, "C", status="cancelled"),
        ]
        summary = rail_summary(services)

        assert summary.total == 3
        assert (summary.active, summary.completed, summary.cancelled) == (1, 1, 1)
        assert summary.vehicles_required == 8
        assert summary.vehicles_assigned == 6
        assert summary.vehicle_shortfall == 2
        assert summary.passengers_affected == 1200
        assert summary.estimated_cost == 5000.0
        assert summary.actual_cost == 1500.5
        assert summary.revenue == 800.0
        assert summary.by_type == {"planned": 2, "emergency": 1}
        assert summary.by_priority == {"medium": 3}

    def test_shortfall_never_negative(self):
        summary = rail_summary([])
        summary.vehicles_assigned = 3
        assert summary.vehicle_shortfall == 0
