"""HTTP-level tests for the intake server.

Runs the real FastAPI app through ``httpx.ASGITransport`` with the database
session dependency overridden and the blob repository replaced by an
in-memory mock.  ASGITransport does not run the lifespan handler, so the
case store, auth gate and intake store are placed on ``app.state`` here.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from intake_forms.models.enums import HiddenAnswerPolicy, Role
from intake_server.app import create_app
from intake_server.auth import AuthGate, hash_secret
from intake_server.config import ServerSettings
from intake_server.dependencies import get_db
from intake_store.adapter import IntakeStore

from helpers.mocks import MockBlobRepository

SECRET_KEY = "api-test-key"
ATTORNEY_SECRET = "counsel-secret"
CLIENT_SECRETS = {"alvarado-pool": "pool-secret", "martinez-estate": "estate-secret"}

ATTORNEY_HASH = hash_secret(ATTORNEY_SECRET)
CLIENT_HASHES = {slug: hash_secret(s) for slug, s in CLIENT_SECRETS.items()}

API = "/api/v1"


# =====================================================================
# Fixtures
# =====================================================================

def build_app(case_store, policy=HiddenAnswerPolicy.RETAIN):
    settings = ServerSettings(
        jwt_secret=SECRET_KEY,
        login_rate_limit="3/minute",
        hidden_answer_policy=policy,
    )
    app = create_app(settings)
    app.state.case_store = case_store
    app.state.auth_gate = AuthGate(
        SECRET_KEY,
        attorney_secret_hash=ATTORNEY_HASH,
        client_secret_hashes=CLIENT_HASHES,
    )
    app.state.intake_store = IntakeStore(repository=MockBlobRepository())

    async def _mock_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = _mock_db
    return app


@pytest.fixture
def app(case_store):
    return build_app(case_store)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def bearer(app, role, scope=None):
    token = app.state.auth_gate.issue_credential(role, scope)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def attorney(app):
    return bearer(app, Role.ATTORNEY)


@pytest.fixture
def pool_client(app):
    return bearer(app, Role.CLIENT, "alvarado-pool")


# =====================================================================
# Login
# =====================================================================

class TestLogin:

    @pytest.mark.asyncio
    async def test_attorney_login(self, client, app):
        resp = await client.post(f"{API}/auth/login", json={"password": ATTORNEY_SECRET})
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "attorney"
        assert body["scope"] is None
        cred = app.state.auth_gate.verify_credential(body["token"])
        assert cred.role is Role.ATTORNEY

    @pytest.mark.asyncio
    async def test_client_login(self, client):
        resp = await client.post(
            f"{API}/auth/login",
            json={"password": "pool-secret", "scope": "alvarado-pool"},
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "client"
        assert resp.json()["scope"] == "alvarado-pool"

    @pytest.mark.asyncio
    async def test_wrong_secret(self, client):
        resp = await client.post(
            f"{API}/auth/login",
            json={"password": "estate-secret", "scope": "alvarado-pool"},
        )
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Invalid credentials"}

    @pytest.mark.asyncio
    async def test_missing_password(self, client):
        resp = await client.post(f"{API}/auth/login", json={"scope": "alvarado-pool"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_throttled_after_failures(self, client):
        body = {"password": "guess", "scope": "alvarado-pool"}
        for _ in range(3):
            assert (await client.post(f"{API}/auth/login", json=body)).status_code == 401
        resp = await client.post(
            f"{API}/auth/login", json={"password": "pool-secret", "scope": "alvarado-pool"}
        )
        assert resp.status_code == 429

        # Another scope from the same address is unaffected
        resp = await client.post(
            f"{API}/auth/login", json={"password": "estate-secret", "scope": "martinez-estate"}
        )
        assert resp.status_code == 200


# =====================================================================
# Access control
# =====================================================================

class TestAccess:

    @pytest.mark.asyncio
    async def test_no_token(self, client):
        resp = await client.get(f"{API}/cases/alvarado-pool")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_bad_token(self, client):
        resp = await client.get(
            f"{API}/cases/alvarado-pool", headers={"Authorization": "Bearer nope"}
        )
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Could not validate credentials"

    @pytest.mark.asyncio
    async def test_expired_token(self, client):
        past = datetime.now(timezone.utc) - timedelta(days=30)
        old_gate = AuthGate(SECRET_KEY, clock=lambda: past)
        token = old_gate.issue_credential(Role.CLIENT, "alvarado-pool")
        resp = await client.get(
            f"{API}/cases/alvarado-pool", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Credentials have expired"

    @pytest.mark.asyncio
    async def test_own_scope(self, client, pool_client):
        resp = await client.get(f"{API}/cases/alvarado-pool", headers=pool_client)
        assert resp.status_code == 200
        body = resp.json()
        assert body["metadata"]["case_number"] == "25STCV35294"
        assert body["versions"] == [1]
        assert body["upload_url"].startswith("https://")

    @pytest.mark.asyncio
    async def test_other_scope_forbidden(self, client, pool_client):
        resp = await client.get(f"{API}/cases/martinez-estate", headers=pool_client)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_scope_checked_before_existence(self, client, pool_client):
        resp = await client.get(f"{API}/cases/no-such-case", headers=pool_client)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_attorney_any_scope(self, client, attorney):
        for slug in ("alvarado-pool", "martinez-estate"):
            resp = await client.get(f"{API}/cases/{slug}", headers=attorney)
            assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_attorney_unknown_case(self, client, attorney):
        resp = await client.get(f"{API}/cases/no-such-case", headers=attorney)
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Resource not found"}


# =====================================================================
# Responses, form and progress
# =====================================================================

class TestResponses:

    @pytest.mark.asyncio
    async def test_empty(self, client, pool_client):
        resp = await client.get(f"{API}/cases/alvarado-pool/responses", headers=pool_client)
        assert resp.status_code == 200
        assert resp.json() == {"answers": None, "updated_at": None}

    @pytest.mark.asyncio
    async def test_save_and_read(self, client, pool_client):
        answers = {"fullName": "Shalymmar Pool", "hasOtherNames": False}
        resp = await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answers": answers},
            headers=pool_client,
        )
        assert resp.status_code == 200
        assert "updated_at" in resp.json()

        resp = await client.get(f"{API}/cases/alvarado-pool/responses", headers=pool_client)
        assert resp.json()["answers"] == answers

    @pytest.mark.asyncio
    async def test_unknown_question_rejected(self, client, pool_client):
        resp = await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answers": {"favouriteColour": "blue"}},
            headers=pool_client,
        )
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid request"}

    @pytest.mark.asyncio
    async def test_wrong_shape_rejected(self, client, pool_client):
        resp = await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answers": {"hasOtherNames": "yes"}},
            headers=pool_client,
        )
        assert resp.status_code == 400

        resp = await client.get(f"{API}/cases/alvarado-pool/responses", headers=pool_client)
        assert resp.json()["answers"] is None

    @pytest.mark.asyncio
    async def test_malformed_body(self, client, pool_client):
        resp = await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answer": {}},
            headers=pool_client,
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_hidden_answers_retained(self, client, pool_client):
        answers = {"hasOtherNames": False, "otherNamesList": [{"name": "Shaly"}]}
        await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answers": answers},
            headers=pool_client,
        )
        resp = await client.get(f"{API}/cases/alvarado-pool/responses", headers=pool_client)
        assert resp.json()["answers"] == answers

    @pytest.mark.asyncio
    async def test_hidden_answers_cleared(self, case_store):
        app = build_app(case_store, policy=HiddenAnswerPolicy.CLEAR)
        headers = bearer(app, Role.CLIENT, "alvarado-pool")
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            await c.put(
                f"{API}/cases/alvarado-pool/responses",
                json={"answers": {"hasOtherNames": False, "otherNamesList": [{"name": "Shaly"}]}},
                headers=headers,
            )
            resp = await c.get(f"{API}/cases/alvarado-pool/responses", headers=headers)
        assert resp.json()["answers"] == {"hasOtherNames": False}

    @pytest.mark.asyncio
    async def test_form_and_progress(self, client, pool_client):
        await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answers": {"fullName": "Shalymmar Pool", "hasOtherNames": True}},
            headers=pool_client,
        )

        resp = await client.get(f"{API}/cases/alvarado-pool/form", headers=pool_client)
        assert resp.status_code == 200
        form = resp.json()
        basic = form["sections"][0]
        ids = [q["id"] for q in basic["questions"]]
        assert "otherNamesList" in ids
        assert "speaksEnglishLanguage" not in ids
        assert basic["questions"][0]["value"] == "Shalymmar Pool"

        resp = await client.get(f"{API}/cases/alvarado-pool/progress", headers=pool_client)
        report = resp.json()
        assert report["progress"] == form["progress"]
        assert report["sections"][0]["answered"] == 2
        assert report["sections"][0]["total"] == 11


# =====================================================================
# Comments
# =====================================================================

class TestComments:

    @pytest.mark.asyncio
    async def test_add_list_remove(self, client, attorney):
        url = f"{API}/cases/alvarado-pool/comments"
        resp = await client.post(
            url,
            json={"question_id": "dateOfBirth", "role": "attorney", "text": "Please confirm"},
            headers=attorney,
        )
        assert resp.status_code == 201
        assert resp.json()["comment"]["text"] == "Please confirm"

        await client.post(
            url,
            json={"question_id": "fullName", "role": "attorney", "text": "Middle name?"},
            headers=attorney,
        )

        resp = await client.get(url, headers=attorney)
        body = resp.json()
        assert body["commented"] == ["fullName", "dateOfBirth"]
        assert len(body["comments"]["dateOfBirth"]) == 1

        resp = await client.delete(f"{url}/dateOfBirth/0", headers=attorney)
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}

        resp = await client.get(url, headers=attorney)
        assert "dateOfBirth" not in resp.json()["comments"]

    @pytest.mark.asyncio
    async def test_client_comment(self, client, pool_client):
        resp = await client.post(
            f"{API}/cases/alvarado-pool/comments",
            json={"question_id": "fullName", "role": "client", "text": "Done"},
            headers=pool_client,
        )
        assert resp.status_code == 201
        assert resp.json()["comment"]["role"] == "client"

    @pytest.mark.asyncio
    async def test_role_mismatch_forbidden(self, client, pool_client):
        resp = await client.post(
            f"{API}/cases/alvarado-pool/comments",
            json={"question_id": "fullName", "role": "attorney", "text": "Sneaky"},
            headers=pool_client,
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_question(self, client, attorney):
        resp = await client.post(
            f"{API}/cases/alvarado-pool/comments",
            json={"question_id": "q99", "role": "attorney", "text": "Hmm"},
            headers=attorney,
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_text(self, client, attorney):
        resp = await client.post(
            f"{API}/cases/alvarado-pool/comments",
            json={"question_id": "fullName", "role": "attorney", "text": "  "},
            headers=attorney,
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_remove_missing(self, client, attorney):
        resp = await client.delete(
            f"{API}/cases/alvarado-pool/comments/fullName/0", headers=attorney
        )
        assert resp.status_code == 404


# =====================================================================
# Attorney-only views and exports
# =====================================================================

class TestAttorneyViews:

    @pytest.mark.asyncio
    async def test_dashboard(self, client, attorney, pool_client):
        await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answers": {"fullName": "Shalymmar Pool"}},
            headers=pool_client,
        )
        resp = await client.get(f"{API}/cases", headers=attorney)
        assert resp.status_code == 200
        rows = resp.json()
        assert [r["slug"] for r in rows] == ["alvarado-pool", "martinez-estate"]
        assert rows[0]["has_responses"] is True
        assert rows[0]["progress"] > 0

    @pytest.mark.asyncio
    async def test_dashboard_forbidden_for_client(self, client, pool_client):
        resp = await client.get(f"{API}/cases", headers=pool_client)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_scopes(self, client, attorney, pool_client):
        await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answers": {}},
            headers=pool_client,
        )
        resp = await client.get(f"{API}/scopes", headers=attorney)
        assert [s["scope"] for s in resp.json()] == ["alvarado-pool"]

        resp = await client.get(f"{API}/scopes", headers=pool_client)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_report_export(self, client, attorney, pool_client):
        await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answers": {"hasFelony": False}},
            headers=pool_client,
        )
        resp = await client.get(f"{API}/cases/alvarado-pool/export/report", headers=attorney)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/markdown")
        assert 'filename="alvarado-pool-responses.md"' in resp.headers["content-disposition"]
        assert "**Have you ever been convicted of a felony?**\nNo" in resp.text

    @pytest.mark.asyncio
    async def test_snapshot_export(self, client, attorney, pool_client):
        answers = {"hasOtherNames": False, "otherNamesList": [{"name": "Shaly"}]}
        await client.put(
            f"{API}/cases/alvarado-pool/responses",
            json={"answers": answers},
            headers=pool_client,
        )
        resp = await client.get(f"{API}/cases/alvarado-pool/export/snapshot", headers=attorney)
        assert resp.status_code == 200
        assert 'filename="alvarado-pool-responses.json"' in resp.headers["content-disposition"]
        body = resp.json()
        assert body["answers"] == answers
        assert body["client"]["client_name"] == "Shalymmar Pool"
        assert body["last_updated"] is not None

    @pytest.mark.asyncio
    async def test_exports_forbidden_for_client(self, client, pool_client):
        for kind in ("report", "snapshot"):
            resp = await client.get(
                f"{API}/cases/alvarado-pool/export/{kind}", headers=pool_client
            )
            assert resp.status_code == 403


# =====================================================================
# Health
# =====================================================================

class TestHealth:

    @pytest.mark.asyncio
    async def test_ok(self, client, monkeypatch):
        async def _up():
            return True

        monkeypatch.setattr("intake_server.app.check_connection", _up)
        resp = await client.get("/health")
        assert resp.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_database_down(self, client, monkeypatch):
        async def _down():
            return False

        monkeypatch.setattr("intake_server.app.check_connection", _down)
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "error"}
