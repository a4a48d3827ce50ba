"""Thin client for the hosted server functions (training workflow)."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from .calculations import DateLike, as_date
from .errors import BackendError, FunctionCallError, RecordValidationError
from .session import Session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="functions_client")


class FunctionsClient:
    """POST JSON to '<base_url>/functions/v1/<name>' on behalf of a session."""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "FunctionsClient":
        return cls(
            settings.functions_url,
            settings.functions_api_key,
            settings.request_timeout_seconds,
        )

    def url_for(self, name: str) -> str:
        return f"{self.base_url}/functions/v1/{name}"

    def call(self, session: Session, name: str, payload: Dict[str, Any]) -> Any:
        """
        Invoke a function and return its decoded JSON body.

        Non-2xx responses raise FunctionCallError; there is no retry.
        """
        url = self.url_for(name)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {session.access_token or ''}",
            "apikey": self.api_key,
        }
        try:
            r = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.exception("POST %s failed: %s", name, exc)
            raise BackendError(f"Could not reach function '{name}'") from exc

        if not 200 <= r.status_code < 300:
            logger.error("POST %s returned %d: %s", name, r.status_code, (r.text or "")[:200])
            raise FunctionCallError(r.status_code, r.text or "")

        try:
            return r.json()
        except ValueError as exc:
            raise BackendError(f"Function '{name}' returned non-JSON response: {r.text[:200]}") from exc

    # -------------------------------------------------------------------------
    # Training
    # -------------------------------------------------------------------------

    def update_training_progress(self, session: Session, training_id: str, progress: int) -> Any:
        if not 0 <= progress <= 100:
            raise RecordValidationError("Progress must be between 0 and 100")
        return self.call(session, "update-training-progress", {
            "training_id": training_id,
            "progress": progress,
            "status": "completed" if progress == 100 else "in_progress",
        })

    def complete_training(
        self, session: Session, training_id: str, now: Optional[datetime] = None
    ) -> Any:
        now = now or datetime.now(timezone.utc)
        return self.call(session, "update-training-progress", {
            "training_id": training_id,
            "progress": 100,
            "status": "completed",
            "completion_date": now.isoformat(),
        })

    def assign_training(
        self,
        session: Session,
        driver_id: str,
        training_type: str,
        due_date: DateLike,
        training_name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Any:
        session.require_role(("admin", "council", "compliance_officer"))
        return self.call(session, "assign-driver-training", {
            "driver_id": driver_id,
            "training_type": training_type,
            "training_name": training_name or training_type,
            "due_date": as_date(due_date).isoformat(),
            "notes": notes,
        })
