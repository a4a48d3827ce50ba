"""Request-scoped session threaded through every store and service call."""

from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import PermissionDenied

ROLES = ("admin", "council", "compliance_officer", "mechanic", "driver", "parent")


@dataclass(frozen=True)
class Session:
    """Who is calling, on behalf of which organization."""

    user_id: str
    organization_id: str
    role: str = "admin"
    access_token: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "council")

    def require_role(self, allowed: Iterable[str]) -> None:
        """Raise PermissionDenied unless the session role is in ``allowed``."""
        allowed = tuple(allowed)
        if self.role not in allowed:
            raise PermissionDenied(
                f"Role '{self.role}' is not permitted (requires one of: {', '.join(allowed)})"
            )
