"""Exception types raised by the store, services and HTTP client."""


class FleetError(Exception):
    """Base class for all application errors."""


class RecordValidationError(FleetError, ValueError):
    """A record or form failed client-side validation."""


class RecordNotFound(FleetError, LookupError):
    """No row with the requested id in the caller's organization."""

    def __init__(self, table: str, record_id: str):
        super().__init__(f"{table} record '{record_id}' not found")
        self.table = table
        self.record_id = record_id


class PermissionDenied(FleetError):
    """The session's role may not perform the operation."""


class UploadRejected(RecordValidationError):
    """A file was refused before upload (type or size)."""


class BackendError(FleetError):
    """A store, blob or remote function call failed."""


class FunctionCallError(BackendError):
    """A remote server function returned a non-2xx response."""

    def __init__(self, status_code: int, text: str):
        super().__init__(f"HTTP {status_code}: {text}")
        self.status_code = status_code
        self.text = text
