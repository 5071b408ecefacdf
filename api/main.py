#!/usr/bin/env python3
"""
Lodging API - backend for the admin room-assignment screen.

Operators open a tour night, pick riders and place them in rooms or pools,
then save; the same API serves printable room lists and a summary of what
riders chose for each night.

Run with: uvicorn api.main:app --port 8000
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lodging.auth_middleware import AuthMiddleware, AuthUser, get_current_user
from lodging.logging_config import configure_logging, get_logger

from .dependencies import authenticate_pb, editor_registry
from .routers import lodging
from .settings import Settings, get_settings

configure_logging(source="api")
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if get_settings().skip_pb_auth:
        logger.warning("SKIP_PB_AUTH is set; PocketBase calls will run unauthenticated")
    else:
        await authenticate_pb()
    yield
    # Realtime subscriptions belong to the editors
    editor_registry.refresh()


def _auth_error_response(default_detail: str):
    async def handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc.detail) or default_detail})

    return handler


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app. Auth mode is fixed here for the app's lifetime."""
    settings = settings or get_settings()
    auth_mode = settings.get_effective_auth_mode()

    app = FastAPI(title="Lodging API", description="Nightly room assignment for the tour", lifespan=lifespan)
    app.add_exception_handler(401, _auth_error_response("Unauthorized"))
    app.add_exception_handler(403, _auth_error_response("Forbidden"))

    app.add_middleware(
        AuthMiddleware,
        auth_mode=auth_mode,
        pocketbase_url=settings.pocketbase_url,
        admin_user_ids=settings.admin_user_ids,
    )
    # Added last so it runs first and answers preflight requests before auth
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(lodging.router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "service": "lodging-api"}

    @app.get("/api/config")
    async def auth_config() -> dict[str, Any]:
        """What the admin UI needs before sign-in."""
        if auth_mode == "bypass":
            return {"auth_mode": "bypass"}
        return {"auth_mode": "production", "pocketbase_url": settings.pocketbase_url}

    @app.get("/api/user/me")
    async def current_operator(user: AuthUser = Depends(get_current_user)) -> dict[str, Any]:
        return user.to_dict()

    logger.info(f"Lodging API configured (auth_mode={auth_mode})")
    return app


app = create_app()
