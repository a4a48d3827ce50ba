"""Status enums and the single status-to-colour table."""

from enum import Enum


class Status(Enum):
    """Expiry classification. Lower value = more urgent."""

    EXPIRED = 1
    DUE_SOON = 2
    VALID = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class Severity(Enum):
    """Compliance issue severity. Lower value = more urgent."""

    CRITICAL = 1
    WARNING = 2
    INFO = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class Tone(Enum):
    """Display tone shared by every status-like string in the app."""

    DANGER = "danger"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"
    NEUTRAL = "neutral"


# Every record status, severity and risk level maps through this one table.
STATUS_TONES = {
    # expiry
    "expired": Tone.DANGER,
    "due_soon": Tone.WARNING,
    "expiring_soon": Tone.WARNING,
    "valid": Tone.SUCCESS,
    # record lifecycles
    "active": Tone.SUCCESS,
    "compliant": Tone.SUCCESS,
    "completed": Tone.SUCCESS,
    "verified": Tone.SUCCESS,
    "passed": Tone.SUCCESS,
    "returned": Tone.SUCCESS,
    "pending": Tone.WARNING,
    "planned": Tone.INFO,
    "in_progress": Tone.INFO,
    "uploaded": Tone.INFO,
    "off_road": Tone.WARNING,
    "maintenance": Tone.WARNING,
    "suspended": Tone.WARNING,
    "non_compliant": Tone.DANGER,
    "failed": Tone.DANGER,
    "revoked": Tone.DANGER,
    "cancelled": Tone.NEUTRAL,
    "retired": Tone.NEUTRAL,
    "inactive": Tone.NEUTRAL,
    # severities and risk levels
    "critical": Tone.DANGER,
    "urgent": Tone.DANGER,
    "high": Tone.DANGER,
    "warning": Tone.WARNING,
    "medium": Tone.WARNING,
    "info": Tone.INFO,
    "low": Tone.SUCCESS,
}

TONE_CLASSES = {
    Tone.DANGER: "bg-red-100 text-red-800 border-red-200",
    Tone.WARNING: "bg-yellow-100 text-yellow-800 border-yellow-200",
    Tone.SUCCESS: "bg-green-100 text-green-800 border-green-200",
    Tone.INFO: "bg-blue-100 text-blue-800 border-blue-200",
    Tone.NEUTRAL: "bg-gray-100 text-gray-800 border-gray-200",
}


def tone_for(status) -> Tone:
    """Map a status string or enum to its display tone. Unknown -> NEUTRAL."""
    if isinstance(status, (Status, Severity)):
        status = status.label
    if status is None:
        return Tone.NEUTRAL
    return STATUS_TONES.get(str(status).lower(), Tone.NEUTRAL)


def status_classes(status) -> str:
    """Tailwind classes for a status badge."""
    return TONE_CLASSES[tone_for(status)]
