"""Environment-driven settings for the intake server.

Everything except credentials has a local-development default.  Without
``INTAKE_JWT_SECRET`` the Auth Gate signs with a random key generated at
startup, so issued tokens stop verifying after a restart.
"""

import os
from dataclasses import dataclass, field

from intake_forms.constants import TOKEN_TTL_DAYS
from intake_forms.models.enums import HiddenAnswerPolicy


@dataclass(frozen=True)
class ServerSettings:
    """Frozen snapshot of the server environment, built once by ``load_settings``."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # Allowed CORS origins; ["*"] in development
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # None means <repo root>/cases
    case_dir: str | None = None

    # Logging
    log_level: str = "INFO"

    # Credentials
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    token_ttl_days: int = TOKEN_TTL_DAYS
    # passlib hash of the attorney secret (see ``intake-hash-secret``)
    attorney_secret_hash: str | None = None
    # YAML file mapping client slug -> passlib hash
    credentials_file: str | None = None

    # Failed-login throttling (``limits`` rate string and storage URI)
    login_rate_limit: str = "5/minute"
    rate_limit_storage_uri: str = "memory://"

    # What to do with answers to currently hidden questions on save
    hidden_answer_policy: HiddenAnswerPolicy = HiddenAnswerPolicy.RETAIN


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` / ``INTAKE_*`` environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        case_dir=os.getenv("INTAKE_CASE_DIR") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        jwt_secret=os.getenv("INTAKE_JWT_SECRET") or None,
        jwt_algorithm=os.getenv("INTAKE_JWT_ALGORITHM", "HS256"),
        token_ttl_days=int(os.getenv("INTAKE_TOKEN_TTL_DAYS", str(TOKEN_TTL_DAYS))),
        attorney_secret_hash=os.getenv("ATTORNEY_SECRET_HASH") or None,
        credentials_file=os.getenv("INTAKE_CREDENTIALS_FILE") or None,
        login_rate_limit=os.getenv("LOGIN_RATE_LIMIT", "5/minute"),
        rate_limit_storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
        hidden_answer_policy=HiddenAnswerPolicy(
            os.getenv("INTAKE_HIDDEN_ANSWER_POLICY", "retain").lower()
        ),
    )
