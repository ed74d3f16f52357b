"""FastAPI application factory and the ``intake-server`` entry point.

``create_app(settings)`` wires together:

  - settings, the form evaluator and the login throttle on ``app.state``
  - a lifespan that loads case YAML, builds the Auth Gate and the
    ``IntakeStore`` adapter, and disposes the database pool on shutdown
  - CORS and the global exception handlers
  - the versioned API routers and an unversioned ``/health`` check
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from intake_forms.casebook import CaseStore
from intake_forms.errors import IntakeError
from intake_forms.evaluator import FormEvaluator
from intake_store.adapter import IntakeStore
from intake_store.database import check_connection, dispose_engine

from intake_server.auth import AuthGate, LoginThrottle
from intake_server.config import ServerSettings, load_settings
from intake_server.errors import (
    generic_error_handler,
    intake_error_handler,
    request_validation_handler,
)
from intake_server.routes import register_routes

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load cases and credentials before serving; release the pool after."""
    settings: ServerSettings = app.state.settings

    case_store = CaseStore(case_dir=settings.case_dir)
    case_store.load()
    app.state.case_store = case_store
    app.state.auth_gate = AuthGate.from_settings(settings)
    app.state.intake_store = IntakeStore()
    logger.info(
        "Intake server ready: %d cases, hidden-answer policy=%s",
        len(case_store.slugs()),
        settings.hidden_answer_policy.value,
    )

    yield

    await dispose_engine()


def _install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IntakeError, intake_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_error_handler)


def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build the configured application (settings default to the environment)."""
    settings = settings or load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
    )

    app = FastAPI(
        title="Client Intake API",
        description=(
            "Client questionnaires, saved answers, review comments and "
            "attorney exports"
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Stateless pieces are ready before startup; the lifespan adds the rest
    app.state.settings = settings
    app.state.evaluator = FormEvaluator()
    app.state.login_throttle = LoginThrottle(
        settings.login_rate_limit, settings.rate_limit_storage_uri
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    @app.get("/health")
    async def health() -> dict:
        """``ok`` when the database answers, ``error`` otherwise (never the cause)."""
        return {"status": "ok" if await check_connection() else "error"}

    register_routes(app)
    return app


# ASGI target for ``uvicorn intake_server.app:app``
app = create_app()


def cli() -> None:
    """Run the server with uvicorn using the environment's settings."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "intake_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
