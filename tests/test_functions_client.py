#!/usr/bin/env python3
"""Tests for the hosted functions client."""

from datetime import datetime, timezone

import pytest
import requests

from models import (
    BackendError,
    FunctionCallError,
    FunctionsClient,
    PermissionDenied,
    RecordValidationError,
    Session,
)

from conftest import ORG


class DummyResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class Recorder(list):
    """requests.post stand-in that remembers its calls."""

    def __init__(self):
        super().__init__()
        self.response = DummyResponse(body={"success": True})

    def respond_with(self, response):
        self.response = response

    def __call__(self, url, json=None, headers=None, timeout=None):
        self.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.response


@pytest.fixture
def calls(monkeypatch):
    recorder = Recorder()
    monkeypatch.setattr("models.functions_client.requests.post", recorder)
    return recorder


@pytest.fixture
def client():
    return FunctionsClient("https://fleet.example.com/", api_key="anon-key", timeout=5)


class TestCall:
    """Tests for FunctionsClient.call."""

    def test_request_shape(self, client, session, calls):
        assert client.call(session, "ping", {"a": 1}) == {"success": True}

        (call,) = calls
        assert call["url"] == "https://fleet.example.com/functions/v1/ping"
        assert call["json"] == {"a": 1}
        assert call["headers"]["Authorization"] == "Bearer tok-123"
        assert call["headers"]["apikey"] == "anon-key"
        assert call["timeout"] == 5

    def test_error_status(self, client, session, calls):
        calls.respond_with(DummyResponse(status_code=403, text="Forbidden"))
        with pytest.raises(FunctionCallError) as exc_info:
            client.call(session, "ping", {})
        assert exc_info.value.status_code == 403
        assert str(exc_info.value) == "HTTP 403: Forbidden"

    def test_non_json_body(self, client, session, calls):
        calls.respond_with(DummyResponse(text="<html>"))
        with pytest.raises(BackendError, match="non-JSON"):
            client.call(session, "ping", {})

    def test_connection_error(self, client, session, monkeypatch):
        def boom(*args, **kwargs):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr("models.functions_client.requests.post", boom)
        with pytest.raises(BackendError, match="Could not reach"):
            client.call(session, "ping", {})


class TestTraining:
    """Tests for the training helpers."""

    def test_progress_in_progress(self, client, session, calls):
        client.update_training_progress(session, "tr-1", 40)
        assert calls[0]["url"].endswith("/update-training-progress")
        assert calls[0]["json"] == {"training_id": "tr-1", "progress": 40, "status": "in_progress"}

    def test_progress_complete(self, client, session, calls):
        client.update_training_progress(session, "tr-1", 100)
        assert calls[0]["json"]["status"] == "completed"

    @pytest.mark.parametrize("progress", [-1, 101])
    def test_progress_out_of_range(self, client, session, calls, progress):
        with pytest.raises(RecordValidationError):
            client.update_training_progress(session, "tr-1", progress)
        assert calls == []

    def test_complete_training(self, client, session, calls):
        now = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
        client.complete_training(session, "tr-1", now=now)
        assert calls[0]["json"]["completion_date"] == "2025-01-15T09:00:00+00:00"
        assert calls[0]["json"]["progress"] == 100

    def test_assign_training(self, client, session, calls):
        client.assign_training(session, "drv-1", "first_aid", "2025-03-01")
        assert calls[0]["url"].endswith("/assign-driver-training")
        assert calls[0]["json"]["training_name"] == "first_aid"
        assert calls[0]["json"]["due_date"] == "2025-03-01"

    def test_assign_training_role(self, client, calls):
        driver = Session(user_id="drv-1", organization_id=ORG, role="driver")
        with pytest.raises(PermissionDenied):
            client.assign_training(driver, "drv-1", "first_aid", "2025-03-01")
