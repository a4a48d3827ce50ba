#!/usr/bin/env python3
"""Tests for record parsing and boundary validation."""

from datetime import date

import pytest

from models import RECORD_TYPES, RecordValidationError, parse_record, validate_row
from models.records import SCHEMA_DEFS, DriverLicense, Vehicle, load_schema, normalize

VEHICLE_ROW = {
    "id": "veh-1",
    "organization_id": "acme",
    "vehicle_number": "BUS-01",
    "registration": "AB12 CDE",
    "make": "Volvo",
    "model": "B8RLE",
}


class TestSchema:
    """Tests for the table schema definitions."""

    def test_every_table_has_a_definition(self):
        defs = load_schema()["$defs"]
        for table in RECORD_TYPES:
            assert SCHEMA_DEFS[table] in defs

    def test_every_table_listed_at_top_level(self):
        properties = load_schema()["properties"]
        for table in RECORD_TYPES:
            assert table in properties


class TestValidateRow:
    """Tests for validate_row."""

    def test_valid_row(self):
        validate_row("vehicles", VEHICLE_ROW)

    def test_missing_required_field(self):
        row = dict(VEHICLE_ROW)
        del row["registration"]
        with pytest.raises(RecordValidationError, match="registration"):
            validate_row("vehicles", row)

    def test_impossible_calendar_date(self):
        row = dict(VEHICLE_ROW, mot_expiry="2025-13-45")
        with pytest.raises(RecordValidationError, match="mot_expiry"):
            validate_row("vehicles", row)

    def test_leap_day(self):
        validate_row("vehicles", dict(VEHICLE_ROW, mot_expiry="2024-02-29"))
        with pytest.raises(RecordValidationError, match="mot_expiry"):
            validate_row("vehicles", dict(VEHICLE_ROW, mot_expiry="2025-02-29"))

    def test_bad_enum_names_column(self):
        row = dict(VEHICLE_ROW, status="scrapped")
        with pytest.raises(RecordValidationError, match=r"vehicles\.status"):
            validate_row("vehicles", row)

    def test_bad_date_format(self):
        row = dict(VEHICLE_ROW, mot_expiry="10/02/2025")
        with pytest.raises(RecordValidationError, match="mot_expiry"):
            validate_row("vehicles", row)

    def test_unknown_column_rejected(self):
        row = dict(VEHICLE_ROW, colour="red")
        with pytest.raises(RecordValidationError):
            validate_row("vehicles", row)

    def test_unknown_table(self):
        with pytest.raises(RecordValidationError, match="Unknown table"):
            validate_row("spaceships", VEHICLE_ROW)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_row("vehicles", {})


class TestParseRecord:
    """Tests for parse_record."""

    def test_builds_dataclass(self):
        vehicle = parse_record("vehicles", VEHICLE_ROW)
        assert isinstance(vehicle, Vehicle)
        assert vehicle.status == "active"
        assert vehicle.mot_expiry is None

    def test_yaml_dates_become_strings(self):
        row = dict(VEHICLE_ROW, mot_expiry=date(2025, 2, 10))
        vehicle = parse_record("vehicles", row)
        assert vehicle.mot_expiry == "2025-02-10"

    def test_list_defaults(self):
        lic = parse_record("driver_licenses", {
            "id": "lic-1",
            "organization_id": "acme",
            "driver_id": "drv-1",
            "license_number": "X1",
            "license_type": "PCV",
            "expiry_date": "2027-01-01",
        })
        assert isinstance(lic, DriverLicense)
        assert lic.endorsements == []
        assert lic.points_balance == 0

    def test_name_properties(self):
        vehicle = parse_record("vehicles", VEHICLE_ROW)
        assert vehicle.name == "BUS-01 (AB12 CDE) Volvo B8RLE"


class TestNormalize:
    """Tests for normalize."""

    def test_nested_dates(self):
        assert normalize({"a": [date(2025, 1, 15)]}) == {"a": ["2025-01-15"]}
