"""Login endpoint — exchanges a secret for a bearer credential.

Failed attempts are throttled per (client address, scope).  The response
never reveals whether the scope exists or which check failed.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from intake_forms.errors import InvalidCredentials, ValidationError
from intake_forms.models.enums import Role

from intake_server.auth import AuthGate, LoginThrottle
from intake_server.dependencies import get_auth_gate, get_login_throttle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class LoginRequest(BaseModel):
    """Body for POST /auth/login."""
    password: str | None = None
    # Case slug the client is logging in to; omitted for attorney login
    scope: str | None = None


class LoginResponse(BaseModel):
    token: str
    role: Role
    scope: str | None = None
    expires_at: datetime


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
    throttle: LoginThrottle = Depends(get_login_throttle),
) -> LoginResponse:
    """Return a signed credential for a valid secret.

    400 when the password is missing, 401 when it matches nothing, 429
    once the failed-login allowance for this address and scope is used up.
    """
    if not body.password:
        raise ValidationError("password is required")

    client_addr = request.client.host if request.client else "unknown"
    throttle_key = (client_addr, body.scope or "-")
    throttle.check(*throttle_key)

    role = gate.check_secret(body.password, body.scope)
    if role is None:
        throttle.record_failure(*throttle_key)
        raise InvalidCredentials(f"login failed from {client_addr} for scope={body.scope}")

    scope = body.scope if role is Role.CLIENT else None
    token = gate.issue_credential(role, scope)
    credential = gate.verify_credential(token)
    logger.info("Login ok: role=%s scope=%s", role.value, scope)
    return LoginResponse(
        token=token, role=role, scope=scope, expires_at=credential.expires_at
    )
