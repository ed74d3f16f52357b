"""Auth Gate — bearer credentials, secret checks and login throttling.

Credentials are stateless signed JWTs carrying a role, an optional client
scope (case slug), issued-at and expiry.  There is no server-side
revocation: a token is valid until it expires.

Secrets are per principal and stored only as passlib hashes:

  - the attorney secret hash comes from ``ATTORNEY_SECRET_HASH``
  - client hashes come from a YAML file (``INTAKE_CREDENTIALS_FILE``)::

        clients:
          alvarado-pool: "$pbkdf2-sha256$29000$..."

Failed logins are counted per (client address, scope) with the ``limits``
moving-window limiter; once the limit is reached further attempts are
rejected before any hash is checked.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable

from jose import JWTError, jwt
from limits import parse
from limits.storage import storage_from_string
from limits.strategies import MovingWindowRateLimiter
from passlib.context import CryptContext
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from intake_forms.casebook import load_yaml
from intake_forms.constants import TOKEN_TTL_DAYS
from intake_forms.errors import (
    AuthExpired,
    AuthForbidden,
    AuthInvalid,
    TooManyAttempts,
    ValidationError,
)
from intake_forms.models.enums import Role
from intake_server.config import ServerSettings

logger = logging.getLogger(__name__)

# pbkdf2_sha256 is the default for new hashes; bcrypt hashes are still
# accepted for verification.
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_secret(secret: str) -> str:
    """Return the passlib hash to store for ``secret``."""
    return pwd_context.hash(secret)


def _is_known_hash(value: str) -> bool:
    return pwd_context.identify(value, required=False) is not None


def load_client_secret_hashes(path: str | Path | None) -> dict[str, str]:
    """Read ``{clients: {slug: hash}}`` from YAML.

    Entries whose value is not a recognised passlib hash are skipped with a
    warning so a plaintext secret pasted by mistake never becomes usable.
    Returns ``{}`` when ``path`` is None.
    """
    if path is None:
        return {}
    raw = load_yaml(path) or {}
    clients = raw.get("clients") or {}
    hashes: dict[str, str] = {}
    for slug, value in clients.items():
        if not isinstance(value, str) or not _is_known_hash(value):
            logger.warning("Ignoring client credential for %s: not a recognised hash", slug)
            continue
        hashes[str(slug)] = value
    logger.info("Loaded %d client credentials from %s", len(hashes), path)
    return hashes


class Credential(BaseModel):
    """Verified contents of a bearer token."""

    role: Role
    scope: str | None = None
    issued_at: datetime
    expires_at: datetime


# ---------------------------------------------------------------------------
# AuthGate
# ---------------------------------------------------------------------------

class AuthGate:
    """Issues, verifies and authorizes bearer credentials.

    Args:
        secret_key: JWT signing key
        algorithm: JWT signing algorithm
        ttl: credential lifetime
        attorney_secret_hash: passlib hash of the attorney secret, or None
            to disable attorney login
        client_secret_hashes: slug -> passlib hash
        clock: returns the current time; defaults to UTC now
    """

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(days=TOKEN_TTL_DAYS),
        attorney_secret_hash: str | None = None,
        client_secret_hashes: dict[str, str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._ttl = ttl
        if attorney_secret_hash is not None and not _is_known_hash(attorney_secret_hash):
            logger.warning("Ignoring attorney secret: not a recognised hash")
            attorney_secret_hash = None
        self._attorney_hash = attorney_secret_hash
        self._client_hashes = dict(client_secret_hashes or {})
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(cls, settings: ServerSettings) -> "AuthGate":
        """Build a gate from ``ServerSettings``."""
        secret_key = settings.jwt_secret
        if not secret_key:
            logger.warning(
                "INTAKE_JWT_SECRET is not set; using a random key "
                "(issued credentials will not survive a restart)"
            )
            secret_key = secrets.token_urlsafe(32)
        return cls(
            secret_key,
            algorithm=settings.jwt_algorithm,
            ttl=timedelta(days=settings.token_ttl_days),
            attorney_secret_hash=settings.attorney_secret_hash,
            client_secret_hashes=load_client_secret_hashes(settings.credentials_file),
        )

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def issue_credential(self, role: Role, scope: str | None = None) -> str:
        """Sign a credential for ``role`` (and ``scope`` for clients)."""
        role = Role(role)
        if role is Role.CLIENT and not scope:
            raise ValidationError("client credentials require a scope")
        issued_at = self._clock()
        claims = {
            "role": role.value,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        if scope is not None:
            claims["scope"] = scope
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def verify_credential(self, token: str) -> Credential:
        """Check signature and expiry and return the credential.

        Raises:
            AuthExpired: the token is past its expiry.
            AuthInvalid: bad signature, malformed token or claims.
        """
        if not token:
            raise AuthInvalid("missing token")
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise AuthInvalid(f"token rejected: {exc}") from None

        try:
            credential = Credential(
                role=claims["role"],
                scope=claims.get("scope"),
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError, PydanticValidationError) as exc:
            raise AuthInvalid(f"malformed claims: {exc}") from None

        if self._clock() >= credential.expires_at:
            raise AuthExpired(f"token expired at {credential.expires_at.isoformat()}")
        return credential

    def authorize(
        self,
        credential: Credential,
        required_roles: Iterable[Role] | None = None,
        required_scope: str | None = None,
    ) -> None:
        """Raise ``AuthForbidden`` unless the credential grants access.

        The attorney role is unscoped and passes any scope check; a client
        credential passes only for its own scope.
        """
        if required_roles is not None and credential.role not in set(required_roles):
            raise AuthForbidden(f"role {credential.role.value} not permitted")
        if (
            required_scope is not None
            and credential.role is Role.CLIENT
            and credential.scope != required_scope
        ):
            raise AuthForbidden(
                f"scope {credential.scope!r} cannot access {required_scope!r}"
            )

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    def check_secret(self, submitted: str, scope: str | None = None) -> Role | None:
        """Return the role granted by ``submitted``, or None.

        The attorney secret is checked first; the client secret for
        ``scope`` only when a scope is given.  A dummy verification runs
        when no hash is configured so timing does not reveal which
        principals exist.
        """
        if self._attorney_hash is not None:
            if pwd_context.verify(submitted, self._attorney_hash):
                return Role.ATTORNEY
        else:
            pwd_context.dummy_verify()

        if scope is None:
            return None

        client_hash = self._client_hashes.get(scope)
        if client_hash is None:
            pwd_context.dummy_verify()
            return None
        if pwd_context.verify(submitted, client_hash):
            return Role.CLIENT
        return None


# ---------------------------------------------------------------------------
# Login throttling
# ---------------------------------------------------------------------------

class LoginThrottle:
    """Moving-window limit on failed logins per identifier tuple.

    Args:
        rate: ``limits`` rate string, e.g. ``"5/minute"``
        storage_uri: ``limits`` storage URI (``memory://``, ``redis://...``)
    """

    def __init__(self, rate: str = "5/minute", storage_uri: str = "memory://") -> None:
        self._item = parse(rate)
        self._limiter = MovingWindowRateLimiter(storage_from_string(storage_uri))

    def check(self, *identifiers: str) -> None:
        """Raise ``TooManyAttempts`` if the failed-login allowance is used up."""
        if not self._limiter.test(self._item, "login", *identifiers):
            raise TooManyAttempts(f"login throttled for {identifiers}")

    def record_failure(self, *identifiers: str) -> None:
        self._limiter.hit(self._item, "login", *identifiers)
