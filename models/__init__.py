"""
Fleet compliance models.

This package provides the records and services behind the fleet tracker:
- Status / Severity / Tone: expiry classes, issue severity and display colours
- records: one dataclass per table, validated against schema.yaml
- FleetStore / BlobStore: per-organization YAML tables and uploaded files
- compliance: document, licence and ORV expiry aggregation
- orv, tachograph, fuel, rail, agreements, vehicle_checks, children, incidents:
  feature workflows on top of the store
- FunctionsClient: hosted server functions (training progress)
"""

from .status import Status, Severity, Tone, tone_for, status_classes
from .errors import (
    FleetError,
    RecordValidationError,
    RecordNotFound,
    PermissionDenied,
    UploadRejected,
    BackendError,
    FunctionCallError,
)
from .session import Session
from .calculations import ExpiryCheck, classify_expiry, days_until, check_status, next_due_date
from .records import RECORD_TYPES, parse_record, validate_row
from .store import FleetStore
from .blobstore import BlobStore
from .compliance import build_report
from .functions_client import FunctionsClient

__all__ = [
    "Status",
    "Severity",
    "Tone",
    "tone_for",
    "status_classes",
    "FleetError",
    "RecordValidationError",
    "RecordNotFound",
    "PermissionDenied",
    "UploadRejected",
    "BackendError",
    "FunctionCallError",
    "Session",
    "ExpiryCheck",
    "classify_expiry",
    "days_until",
    "check_status",
    "next_due_date",
    "RECORD_TYPES",
    "parse_record",
    "validate_row",
    "FleetStore",
    "BlobStore",
    "build_report",
    "FunctionsClient",
]
