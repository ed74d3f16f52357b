"""FastAPI dependency injection — DB sessions, shared singletons and auth.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on
error, matching the store convention where the repository calls
``flush()`` but never ``commit()``.

Auth dependencies turn the ``Authorization: Bearer`` header into a
verified ``Credential`` and apply the gate's role/scope checks before the
route body runs.
"""

from typing import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from intake_forms.casebook import CaseStore
from intake_forms.errors import AuthInvalid
from intake_forms.evaluator import FormEvaluator
from intake_forms.models.case import ClientCase
from intake_forms.models.enums import Role
from intake_store.adapter import IntakeStore
from intake_store.database import get_session_factory

from intake_server.auth import AuthGate, Credential, LoginThrottle
from intake_server.config import ServerSettings

_bearer = HTTPBearer(auto_error=False)


# ------------------------------------------------------------------
# Database session (owns the transaction boundary)
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ------------------------------------------------------------------
# Singletons placed on app.state by create_app and the lifespan
# ------------------------------------------------------------------

def get_settings(request: Request) -> ServerSettings:
    return request.app.state.settings


def get_case_store(request: Request) -> CaseStore:
    """Return the CaseStore singleton from ``app.state``."""
    return request.app.state.case_store


def get_intake_store(request: Request) -> IntakeStore:
    """Return the IntakeStore adapter from ``app.state``."""
    return request.app.state.intake_store


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth_gate


def get_login_throttle(request: Request) -> LoginThrottle:
    return request.app.state.login_throttle


def get_evaluator(request: Request) -> FormEvaluator:
    return request.app.state.evaluator


# ------------------------------------------------------------------
# Auth
# ------------------------------------------------------------------

async def get_credential(
    bearer: HTTPAuthorizationCredentials | None = Depends(_bearer),
    gate: AuthGate = Depends(get_auth_gate),
) -> Credential:
    """Verify the bearer token.  Missing or malformed → 401."""
    if bearer is None or bearer.scheme.lower() != "bearer":
        raise AuthInvalid("missing bearer token")
    return gate.verify_credential(bearer.credentials)


async def require_attorney(
    credential: Credential = Depends(get_credential),
    gate: AuthGate = Depends(get_auth_gate),
) -> Credential:
    """Elevated-only endpoints (listing, dashboard, exports)."""
    gate.authorize(credential, required_roles=[Role.ATTORNEY])
    return credential


async def require_case_access(
    slug: str,
    credential: Credential = Depends(get_credential),
    gate: AuthGate = Depends(get_auth_gate),
    store: CaseStore = Depends(get_case_store),
) -> ClientCase:
    """Scoped-or-elevated access to ``slug``; returns the latest case schema.

    Scope is checked before existence so a client cannot discover which
    other slugs exist.
    """
    gate.authorize(credential, required_scope=slug)
    return store.get_case(slug)
