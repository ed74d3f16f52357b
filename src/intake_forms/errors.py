"""Error taxonomy shared by the SDK, the store adapter and the HTTP layer.

Every error carries an HTTP status and a stable, client-safe message.  The
exception's own ``str()`` may contain internal detail (slug, question id)
and is only ever written to the server log; the HTTP handlers in
``intake_server.errors`` send ``safe_message`` to the client instead.
"""


class IntakeError(Exception):
    """Base class for all expected, caller-visible failures."""

    status_code: int = 400
    safe_message: str = "Invalid request"


# --- Auth ---

class AuthError(IntakeError):
    """Base class for credential and authorization failures."""

    status_code = 401
    safe_message = "Could not validate credentials"


class AuthInvalid(AuthError):
    """Token is missing, malformed, or carries a bad signature."""


class AuthExpired(AuthError):
    """Token signature is valid but the expiry horizon has passed."""

    safe_message = "Credentials have expired"


class InvalidCredentials(AuthError):
    """Login secret did not match any known principal."""

    safe_message = "Invalid credentials"


class AuthForbidden(AuthError):
    """Valid credential, but its role or scope does not grant access."""

    status_code = 403
    safe_message = "Not permitted"


class TooManyAttempts(AuthError):
    """Login attempts exceeded the configured rate limit."""

    status_code = 429
    safe_message = "Too many attempts, try again later"


# --- Request / data ---

class ValidationError(IntakeError, ValueError):
    """A request field is missing or malformed."""


class AnswerShapeError(ValidationError):
    """An answer value does not have the shape its question kind requires."""


class NotFound(IntakeError, LookupError):
    """Unknown case slug, comment thread, or comment index."""

    status_code = 404
    safe_message = "Resource not found"


# --- Storage ---

class StoreUnavailable(IntakeError):
    """The underlying blob operation failed.  Not retried."""

    status_code = 503
    safe_message = "Storage temporarily unavailable"
