"""
ocop_client.devserver.app

FastAPI app factory for the development backend.

Responsibilities:
- Register routers and request-context middleware.
- Render every error in the backend's `{success: false, message}` envelope.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.status import HTTP_400_BAD_REQUEST

from ocop_client.devserver.routes.auth import admin_router, auth_router
from ocop_client.devserver.routes.health import router as health_router
from ocop_client.devserver.users import UserDirectory
from ocop_client.observability.logging import configure_logging, get_logger
from ocop_client.observability.middleware import RequestContextMiddleware
from ocop_client.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings, users: UserDirectory | None = None) -> FastAPI:
    configure_logging(service_name=f"{settings.service_name}-devserver", level=settings.log_level)

    app = FastAPI(title="OCOP Dev Backend", version="0.1.0")
    app.state.settings = settings
    app.state.users = users or UserDirectory()

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(admin_router)
    app.include_router(auth_router)

    @app.exception_handler(HTTPException)
    async def _http_error(_: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [str(e.get("msg", "")) for e in exc.errors()]
        return JSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Validation failed", "errors": errors},
        )

    @app.on_event("startup")
    async def _startup() -> None:
        log.info("startup", env=settings.env)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        log.info("shutdown")

    return app
