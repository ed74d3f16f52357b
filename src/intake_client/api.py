"""IntakeClient — async httpx client for the intake server API.

Every call that needs a credential takes an explicit ``ClientSession``.
HTTP failures are mapped back onto the shared error taxonomy so callers
handle the same exception classes on both sides of the wire.  Nothing is
retried: the first failure is returned to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from intake_forms.errors import (
    AuthExpired,
    AuthForbidden,
    AuthInvalid,
    IntakeError,
    InvalidCredentials,
    NotFound,
    StoreUnavailable,
    TooManyAttempts,
    ValidationError,
)
from intake_forms.models.case import CaseSummary, ScopeEntry, StoredResponses
from intake_forms.models.comment import Comment
from intake_forms.models.export import CaseSnapshot
from intake_forms.models.view import FormView, ProgressReport

from intake_client.session import ClientSession

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

_STATUS_ERRORS: dict[int, type[IntakeError]] = {
    400: ValidationError,
    403: AuthForbidden,
    404: NotFound,
    429: TooManyAttempts,
}


def error_from_response(resp: httpx.Response) -> IntakeError:
    """Map an error response to the matching exception instance."""
    try:
        detail = resp.json().get("detail", "")
    except ValueError:
        detail = resp.text
    status = resp.status_code
    if status == 401:
        if detail == AuthExpired.safe_message:
            return AuthExpired(detail)
        if detail == InvalidCredentials.safe_message:
            return InvalidCredentials(detail)
        return AuthInvalid(detail)
    if status in _STATUS_ERRORS:
        return _STATUS_ERRORS[status](detail)
    if status >= 500:
        return StoreUnavailable(f"HTTP {status}: {detail}")
    return IntakeError(f"HTTP {status}: {detail}")


class IntakeClient:
    """Async HTTP client for the intake server API.

    Args:
        base_url: server root, e.g. ``http://localhost:8080``
        timeout: per-request timeout in seconds
        transport: optional httpx transport (tests pass a mock or ASGI one)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> IntakeClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, password: str, scope: str | None = None) -> ClientSession:
        """Exchange a secret for a session.  Raises ``InvalidCredentials`` on 401."""
        data = await self._request(
            "POST", "/auth/login", json={"password": password, "scope": scope}
        )
        return ClientSession.model_validate(data)

    # ------------------------------------------------------------------
    # Cases
    # ------------------------------------------------------------------

    async def list_scopes(self, session: ClientSession) -> list[ScopeEntry]:
        data = await self._request("GET", "/scopes", session=session)
        return [ScopeEntry.model_validate(d) for d in data]

    async def list_cases(self, session: ClientSession) -> list[CaseSummary]:
        data = await self._request("GET", "/cases", session=session)
        return [CaseSummary.model_validate(d) for d in data]

    async def get_case(self, session: ClientSession, slug: str) -> dict:
        return await self._request("GET", f"/cases/{slug}", session=session)

    async def get_form(self, session: ClientSession, slug: str) -> FormView:
        data = await self._request("GET", f"/cases/{slug}/form", session=session)
        return FormView.model_validate(data)

    async def get_progress(self, session: ClientSession, slug: str) -> ProgressReport:
        data = await self._request("GET", f"/cases/{slug}/progress", session=session)
        return ProgressReport.model_validate(data)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def get_responses(self, session: ClientSession, slug: str) -> StoredResponses:
        data = await self._request("GET", f"/cases/{slug}/responses", session=session)
        return StoredResponses.model_validate(data)

    async def save_responses(
        self, session: ClientSession, slug: str, answers: dict[str, Any]
    ) -> datetime:
        """Overwrite the answer map; returns the server's update time."""
        data = await self._request(
            "PUT", f"/cases/{slug}/responses", session=session, json={"answers": answers}
        )
        return datetime.fromisoformat(data["updated_at"])

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def get_comments(self, session: ClientSession, slug: str) -> dict[str, list[Comment]]:
        data = await self._request("GET", f"/cases/{slug}/comments", session=session)
        return {
            qid: [Comment.model_validate(c) for c in comments]
            for qid, comments in data["comments"].items()
        }

    async def add_comment(
        self, session: ClientSession, slug: str, question_id: str, text: str
    ) -> Comment:
        """Post a comment as the session's own role."""
        data = await self._request(
            "POST",
            f"/cases/{slug}/comments",
            session=session,
            json={"question_id": question_id, "role": session.role.value, "text": text},
        )
        return Comment.model_validate(data["comment"])

    async def remove_comment(
        self, session: ClientSession, slug: str, question_id: str, index: int
    ) -> None:
        await self._request(
            "DELETE", f"/cases/{slug}/comments/{question_id}/{index}", session=session
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def export_report(self, session: ClientSession, slug: str) -> str:
        resp = await self._send("GET", f"/cases/{slug}/export/report", session=session)
        return resp.text

    async def export_snapshot(self, session: ClientSession, slug: str) -> CaseSnapshot:
        data = await self._request("GET", f"/cases/{slug}/export/snapshot", session=session)
        return CaseSnapshot.model_validate(data)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        *,
        session: ClientSession | None = None,
        json: Any = None,
    ) -> httpx.Response:
        headers = session.auth_headers() if session is not None else {}
        try:
            resp = await self._client.request(
                method, f"{API_PREFIX}{path}", headers=headers, json=json
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise StoreUnavailable(f"{method} {path}: {exc}") from exc
        if resp.is_error:
            err = error_from_response(resp)
            logger.warning("%s %s -> %d %s", method, path, resp.status_code, type(err).__name__)
            raise err
        return resp

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = await self._send(method, path, **kwargs)
        return resp.json()
