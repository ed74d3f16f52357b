"""Tests for environment-driven configuration and the blob repository."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from intake_forms.errors import StoreUnavailable
from intake_forms.models.enums import HiddenAnswerPolicy
from intake_server.config import ServerSettings, load_settings
from intake_store.database import DatabaseSettings, load_database_settings
from intake_store.models.blob import IntakeBlob
from intake_store.repository import BlobRepository


# =====================================================================
# Server settings
# =====================================================================

class TestLoadSettings:

    def test_defaults(self, monkeypatch):
        for var in (
            "SERVER_HOST",
            "SERVER_PORT",
            "SERVER_CORS_ORIGINS",
            "SERVER_LOG_LEVEL",
            "INTAKE_CASE_DIR",
            "INTAKE_JWT_SECRET",
            "INTAKE_JWT_ALGORITHM",
            "INTAKE_TOKEN_TTL_DAYS",
            "ATTORNEY_SECRET_HASH",
            "INTAKE_CREDENTIALS_FILE",
            "LOGIN_RATE_LIMIT",
            "RATE_LIMIT_STORAGE_URI",
            "INTAKE_HIDDEN_ANSWER_POLICY",
        ):
            monkeypatch.delenv(var, raising=False)
        settings = load_settings()
        assert settings == ServerSettings(cors_origins=["*"])
        assert settings.hidden_answer_policy is HiddenAnswerPolicy.RETAIN
        assert settings.jwt_secret is None

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("SERVER_PORT", "9000")
        monkeypatch.setenv("SERVER_CORS_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("SERVER_LOG_LEVEL", "debug")
        monkeypatch.setenv("INTAKE_JWT_SECRET", "k")
        monkeypatch.setenv("INTAKE_HIDDEN_ANSWER_POLICY", "CLEAR")
        monkeypatch.setenv("LOGIN_RATE_LIMIT", "10/hour")
        settings = load_settings()
        assert settings.port == 9000
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.log_level == "DEBUG"
        assert settings.jwt_secret == "k"
        assert settings.hidden_answer_policy is HiddenAnswerPolicy.CLEAR
        assert settings.login_rate_limit == "10/hour"

    def test_bad_policy(self, monkeypatch):
        monkeypatch.setenv("INTAKE_HIDDEN_ANSWER_POLICY", "forget")
        with pytest.raises(ValueError):
            load_settings()


# =====================================================================
# Database settings
# =====================================================================

class TestDatabaseSettings:

    def test_from_parts(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("PG_HOST", "db")
        monkeypatch.setenv("PG_USER", "u")
        monkeypatch.setenv("PG_PASSWORD", "p")
        monkeypatch.setenv("PG_DATABASE", "intake")
        settings = load_database_settings()
        assert settings.url == "postgresql+asyncpg://u:p@db:5432/intake"
        assert settings.sync_url == "postgresql://u:p@db:5432/intake"

    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://x:y@host/db")
        monkeypatch.setenv("PG_HOST", "ignored")
        settings = load_database_settings()
        assert settings.url == "postgresql+asyncpg://x:y@host/db"
        assert settings.sync_url == "postgresql://x:y@host/db"

    def test_async_database_url_kept(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://x:y@host/db")
        assert load_database_settings().url == "postgresql+asyncpg://x:y@host/db"

    def test_pool_tuning(self, monkeypatch):
        monkeypatch.setenv("PG_POOL_SIZE", "2")
        monkeypatch.setenv("PG_MAX_OVERFLOW", "0")
        monkeypatch.setenv("PG_ECHO", "true")
        settings = load_database_settings()
        assert (settings.pool_size, settings.max_overflow, settings.echo) == (2, 0, True)

    def test_defaults(self, monkeypatch):
        for var in ("PG_POOL_SIZE", "PG_MAX_OVERFLOW", "PG_ECHO"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("DATABASE_URL", "postgresql://x:y@host/db")
        assert load_database_settings() == DatabaseSettings(url="postgresql+asyncpg://x:y@host/db")


# =====================================================================
# BlobRepository against a mocked session
# =====================================================================

class TestBlobRepository:

    @pytest.mark.asyncio
    async def test_get_missing(self):
        db = AsyncMock()
        db.get.return_value = None
        assert await BlobRepository().get_json(db, "responses-acme") is None

    @pytest.mark.asyncio
    async def test_put_creates_row(self):
        db = AsyncMock()
        db.add = MagicMock()
        db.get.return_value = None
        await BlobRepository().put_json(db, "responses-acme", {"answers": {}})
        row = db.add.call_args.args[0]
        assert isinstance(row, IntakeBlob)
        assert row.key == "responses-acme"
        assert row.value == {"answers": {}}
        db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_put_overwrites_row(self):
        existing = IntakeBlob(key="responses-acme", value={"answers": {"q1": True}})
        db = AsyncMock()
        db.get.return_value = existing
        written_at = await BlobRepository().put_json(db, "responses-acme", {"answers": {}})
        assert existing.value == {"answers": {}}
        assert existing.updated_at == written_at

    @pytest.mark.asyncio
    async def test_failure_maps_to_store_unavailable(self):
        db = AsyncMock()
        db.get.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with pytest.raises(StoreUnavailable):
            await BlobRepository().get_json(db, "responses-acme")
        with pytest.raises(StoreUnavailable):
            await BlobRepository().put_json(db, "responses-acme", {})
