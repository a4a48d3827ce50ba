#!/usr/bin/env python3
"""Tests for Status, Severity and the status tone table."""

from models import Severity, Status, Tone, status_classes, tone_for
from models.status import STATUS_TONES, TONE_CLASSES


class TestStatus:
    """Tests for Status enum ordering."""

    def test_urgency_ordering(self):
        """Lower value = more urgent."""
        assert Status.EXPIRED.value < Status.DUE_SOON.value
        assert Status.DUE_SOON.value < Status.VALID.value

    def test_labels(self):
        assert Status.EXPIRED.label == "expired"
        assert Status.DUE_SOON.label == "due_soon"
        assert Status.VALID.label == "valid"


class TestSeverity:
    """Tests for Severity enum."""

    def test_urgency_ordering(self):
        assert Severity.CRITICAL.value < Severity.WARNING.value < Severity.INFO.value

    def test_labels(self):
        assert Severity.CRITICAL.label == "critical"


class TestToneFor:
    """Tests for tone_for mapping."""

    def test_expiry_statuses(self):
        assert tone_for("expired") == Tone.DANGER
        assert tone_for("due_soon") == Tone.WARNING
        assert tone_for("valid") == Tone.SUCCESS

    def test_accepts_enums(self):
        assert tone_for(Status.EXPIRED) == Tone.DANGER
        assert tone_for(Severity.WARNING) == Tone.WARNING
        assert tone_for(Severity.INFO) == Tone.INFO

    def test_record_statuses(self):
        assert tone_for("compliant") == Tone.SUCCESS
        assert tone_for("non_compliant") == Tone.DANGER
        assert tone_for("pending") == Tone.WARNING
        assert tone_for("returned") == Tone.SUCCESS

    def test_case_insensitive(self):
        assert tone_for("EXPIRED") == Tone.DANGER

    def test_unknown_is_neutral(self):
        assert tone_for("something-else") == Tone.NEUTRAL
        assert tone_for(None) == Tone.NEUTRAL


class TestStatusClasses:
    """Tests for the single CSS class table."""

    def test_every_tone_has_classes(self):
        for tone in Tone:
            assert tone in TONE_CLASSES

    def test_every_mapped_status_resolves(self):
        for status in STATUS_TONES:
            assert status_classes(status) == TONE_CLASSES[STATUS_TONES[status]]

    def test_expired_is_red(self):
        assert "red" in status_classes("expired")
        assert "gray" in status_classes("unknown")
