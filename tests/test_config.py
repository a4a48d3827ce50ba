#!/usr/bin/env python3
"""Tests for environment-driven settings."""

from pathlib import Path

from models import FunctionsClient
from utils.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FLEET_WARNING_DAYS", raising=False)
        s = Settings()
        assert s.warning_days == 30
        assert s.max_upload_bytes == 50 * 1024 * 1024

    def test_env_prefix(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FLEET_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("FLEET_WARNING_DAYS", "14")
        s = Settings()
        assert s.data_dir == Path(tmp_path)
        assert s.warning_days == 14

    def test_functions_url_trailing_slash(self, monkeypatch):
        monkeypatch.setenv("FLEET_FUNCTIONS_URL", "https://fleet.example.com/")
        monkeypatch.setenv("FLEET_REQUEST_TIMEOUT_SECONDS", "7.5")
        s = Settings()
        assert s.functions_url == "https://fleet.example.com"

        client = FunctionsClient.from_settings(s)
        assert client.url_for("x") == "https://fleet.example.com/functions/v1/x"
        assert client.timeout == 7.5
