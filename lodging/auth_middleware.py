"""
Authentication middleware for the lodging operator API.

Two modes:
- bypass: every request runs as a local dev admin (development only)
- production: a PocketBase operator token is required on every request
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from fastapi import Depends, HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response

from .token_auth import OperatorTokenValidator, extract_bearer_token

logger = logging.getLogger(__name__)

AUTH_MODES = ("bypass", "production")
PUBLIC_PATHS = frozenset({"/health", "/api/health", "/api/config"})


class AuthUser:
    """An authenticated operator."""

    def __init__(self, user_id: str, email: str, display_name: str, is_admin: bool):
        self.user_id = user_id
        self.email = email
        self.display_name = display_name
        self.is_admin = is_admin

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "display_name": self.display_name,
            "is_admin": self.is_admin,
        }


DEV_ADMIN = AuthUser(user_id="dev-admin", email="dev_admin@example.com", display_name="Dev Admin", is_admin=True)


class AuthMiddleware(BaseHTTPMiddleware):
    """Attaches ``request.state.user`` or rejects the request with 401."""

    def __init__(
        self,
        app: Any,
        auth_mode: str,
        pocketbase_url: str = "http://127.0.0.1:8090",
        admin_user_ids: Iterable[str] = (),
        validator: OperatorTokenValidator | None = None,
    ):
        super().__init__(app)
        self.auth_mode = auth_mode.lower()
        if self.auth_mode not in AUTH_MODES:
            raise ValueError(f"Invalid AUTH_MODE: {auth_mode}. Must be bypass or production")

        self.admin_user_ids = frozenset(admin_user_ids)
        self.validator = validator
        if self.auth_mode == "production" and self.validator is None:
            self.validator = OperatorTokenValidator(pocketbase_url)

        logger.info(f"Authentication middleware initialized in {self.auth_mode} mode")

    def _is_admin(self, user_id: str) -> bool:
        # With no explicit list every signed-in operator may edit
        return not self.admin_user_ids or user_id in self.admin_user_ids

    def _user_from_token(self, request: Request) -> AuthUser | None:
        token = extract_bearer_token(request.headers.get("Authorization"))
        if not token or self.validator is None:
            return None

        record = self.validator.validate_token(token)
        if not record:
            return None

        user_id = str(record.get("id", ""))
        return AuthUser(
            user_id=user_id,
            email=record.get("email", ""),
            display_name=record.get("name") or record.get("username") or user_id,
            is_admin=self._is_admin(user_id),
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        if self.auth_mode == "bypass":
            user: AuthUser | None = DEV_ADMIN
        else:
            user = self._user_from_token(request)

        if user is None:
            if request.method == "OPTIONS":
                return await call_next(request)
            logger.warning(f"Unauthenticated request to {request.url.path}")
            # Raising here would surface as a 500 through BaseHTTPMiddleware
            return JSONResponse(status_code=401, content={"detail": "Authentication required"})

        request.state.user = user
        logger.debug(f"Authenticated request from {user.user_id} to {request.url.path}")
        return await call_next(request)


def get_current_user(request: Request) -> AuthUser:
    user: AuthUser | None = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user

