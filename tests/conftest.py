"""Shared fixtures: a temporary organization store, blob store and session."""

import pytest

from models import BlobStore, FleetStore, Session

ORG = "acme"
FIXED_NOW = "2025-01-15T09:00:00+00:00"


@pytest.fixture
def store(tmp_path):
    """Store with one empty organization and a frozen clock."""
    fleet_store = FleetStore(tmp_path / "data", clock=lambda: FIXED_NOW)
    fleet_store.create_organization(ORG, "Acme Transport")
    return fleet_store


@pytest.fixture
def session():
    return Session(user_id="user-1", organization_id=ORG, role="admin", access_token="tok-123")


@pytest.fixture
def blobs(tmp_path):
    return BlobStore(tmp_path / "blobs")


@pytest.fixture
def vehicle(store, session):
    return store.insert(session, "vehicles", {
        "vehicle_number": "BUS-01",
        "registration": "AB12 CDE",
        "make": "Volvo",
        "model": "B8RLE",
    })
