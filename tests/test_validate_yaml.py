#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

import shutil
from pathlib import Path

from models.records import load_schema
from validate_yaml import main, validate_data_file

SAMPLE = Path(__file__).parent.parent / "data" / "acme-transport.yaml"


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_has_expected_structure(self):
        schema = load_schema()
        assert "organization" in schema["required"]
        assert "vehicles" in schema["properties"]
        assert "driverLicense" in schema["$defs"]


class TestValidateDataFile:
    """Tests for validate_data_file function."""

    def test_sample_data_is_valid(self):
        assert validate_data_file(SAMPLE, load_schema()) == []

    def test_valid_minimal_returns_no_errors(self, tmp_path):
        """Unquoted dates are accepted."""
        path = tmp_path / "tiny.yaml"
        path.write_text("""
organization:
  id: tiny
  name: Tiny Coaches
vehicles:
  - id: v1
    organization_id: tiny
    vehicle_number: C1
    registration: AA11 AAA
    make: Setra
    model: S515
    mot_expiry: 2025-05-01
""")
        assert validate_data_file(path, load_schema()) == []

    def test_missing_required_field_returns_errors(self, tmp_path):
        path = tmp_path / "tiny.yaml"
        path.write_text("""
organization:
  id: tiny
  name: Tiny Coaches
vehicles:
  - id: v1
    organization_id: tiny
    vehicle_number: C1
    make: Setra
    model: S515
""")
        errors = validate_data_file(path, load_schema())
        assert any("Schema validation error" in e and "registration" in e for e in errors)
        assert "  at path: vehicles.0" in errors

    def test_unknown_column_returns_errors(self, tmp_path):
        path = tmp_path / "tiny.yaml"
        path.write_text("""
organization: {id: tiny, name: Tiny Coaches}
drivers:
  - {id: d1, organization_id: tiny, first_name: A, last_name: B, shoe_size: 9}
""")
        errors = validate_data_file(path, load_schema())
        assert any("shoe_size" in e for e in errors)

    def test_org_id_must_match_file_name(self, tmp_path):
        path = tmp_path / "other.yaml"
        path.write_text("organization: {id: tiny, name: Tiny Coaches}\n")
        errors = validate_data_file(path, load_schema())
        assert errors == ["Organization id 'tiny' does not match file name 'other'"]

    def test_invalid_yaml_returns_parse_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("organization:\n  id: [unclosed\n")
        errors = validate_data_file(path, load_schema())
        assert len(errors) == 1
        assert errors[0].startswith("YAML parse error")

    def test_nonexistent_file_returns_errors(self, tmp_path):
        errors = validate_data_file(tmp_path / "missing.yaml", load_schema())
        assert len(errors) == 1
        assert errors[0].startswith("Error:")


class TestMain:
    """Tests for the validate_yaml entry point."""

    def test_all_valid(self, tmp_path, capsys):
        shutil.copy(SAMPLE, tmp_path / SAMPLE.name)
        assert main([str(tmp_path)]) == 0
        assert "OK: acme-transport.yaml" in capsys.readouterr().out

    def test_reports_failures(self, tmp_path, capsys):
        shutil.copy(SAMPLE, tmp_path / SAMPLE.name)
        (tmp_path / "broken.yaml").write_text("vehicles: []\n")
        assert main([str(tmp_path)]) == 1
        out = capsys.readouterr().out
        assert "FAIL: broken.yaml" in out
        assert "OK: acme-transport.yaml" in out

    def test_empty_directory(self, tmp_path, capsys):
        assert main([str(tmp_path)]) == 0
        assert "No YAML files" in capsys.readouterr().out

    def test_missing_directory(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope")]) == 1
