"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from intake_server.routes.auth import router as auth_router
from intake_server.routes.cases import router as cases_router
from intake_server.routes.comments import router as comments_router
from intake_server.routes.export import router as export_router
from intake_server.routes.responses import router as responses_router
from intake_server.routes.scopes import router as scopes_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(scopes_router, prefix=API_PREFIX)
    app.include_router(cases_router, prefix=API_PREFIX)
    app.include_router(responses_router, prefix=API_PREFIX)
    app.include_router(comments_router, prefix=API_PREFIX)
    app.include_router(export_router, prefix=API_PREFIX)
