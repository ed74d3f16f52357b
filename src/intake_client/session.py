"""Explicit client-side session state.

A ``ClientSession`` holds the bearer credential returned by login and is
passed to every ``IntakeClient`` call.  It is checked for expiry before
each use instead of being read from ambient global state; once expired the
caller must log in again (there is no refresh).
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel

from intake_forms.errors import AuthExpired
from intake_forms.models.enums import Role


class ClientSession(BaseModel):
    """Bearer credential plus the role and scope it grants."""

    token: str
    role: Role
    scope: str | None = None
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def require_valid(self, now: datetime | None = None) -> None:
        """Raise ``AuthExpired`` if the credential is past its expiry."""
        if self.is_expired(now):
            raise AuthExpired(f"session expired at {self.expires_at.isoformat()}")

    def auth_headers(self) -> dict[str, str]:
        """``Authorization`` header for an outbound request (checks expiry)."""
        self.require_valid()
        return {"Authorization": f"Bearer {self.token}"}
