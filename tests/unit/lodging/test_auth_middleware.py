"""Tests for the operator authentication middleware."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from lodging.auth_middleware import AuthMiddleware, AuthUser, get_current_user, require_admin


def build_app(auth_mode: str, validator=None, admin_user_ids=()) -> FastAPI:
    app = FastAPI()
    app.add_middleware(AuthMiddleware, auth_mode=auth_mode, admin_user_ids=admin_user_ids, validator=validator)

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/whoami")
    async def whoami(user: AuthUser = Depends(get_current_user)):
        return user.to_dict()

    @app.post("/edit")
    async def edit(user: AuthUser = Depends(require_admin)):
        return {"by": user.user_id}

    return app


def validator_for(record: dict | None) -> MagicMock:
    validator = MagicMock()
    validator.validate_token.return_value = record
    return validator


class TestAuthUser:
    def test_to_dict(self):
        user = AuthUser(user_id="op-1", email="op@tour.local", display_name="Op", is_admin=False)
        assert user.to_dict() == {
            "user_id": "op-1",
            "email": "op@tour.local",
            "display_name": "Op",
            "is_admin": False,
        }


class TestInit:
    def test_invalid_mode(self):
        with pytest.raises(ValueError, match="Invalid AUTH_MODE"):
            AuthMiddleware(MagicMock(), auth_mode="oidc")

    def test_production_builds_validator(self):
        middleware = AuthMiddleware(MagicMock(), auth_mode="production", pocketbase_url="http://pb:8090")
        assert middleware.validator is not None
        assert middleware.validator.pocketbase_url == "http://pb:8090"


class TestBypassMode:
    def test_requests_run_as_dev_admin(self):
        client = TestClient(build_app("bypass"))
        response = client.get("/whoami")

        assert response.status_code == 200
        assert response.json()["user_id"] == "dev-admin"
        assert client.post("/edit").status_code == 200


class TestProductionMode:
    def test_missing_token_is_401(self):
        client = TestClient(build_app("production", validator=validator_for(None)))
        assert client.get("/whoami").status_code == 401

    def test_public_paths_skip_auth(self):
        client = TestClient(build_app("production", validator=validator_for(None)))
        assert client.get("/health").status_code == 200

    def test_valid_token(self):
        validator = validator_for({"id": "op-1", "email": "op@tour.local", "name": "Operator One"})
        client = TestClient(build_app("production", validator=validator))

        response = client.get("/whoami", headers={"Authorization": "Bearer token-1"})

        assert response.status_code == 200
        assert response.json()["display_name"] == "Operator One"
        assert response.json()["is_admin"] is True
        validator.validate_token.assert_called_once_with("token-1")

    def test_operator_outside_admin_list_cannot_edit(self):
        validator = validator_for({"id": "op-2", "email": "viewer@tour.local"})
        client = TestClient(build_app("production", validator=validator, admin_user_ids=["op-1"]))
        headers = {"Authorization": "Bearer token-2"}

        assert client.get("/whoami", headers=headers).status_code == 200
        assert client.post("/edit", headers=headers).status_code == 403


class TestGetCurrentUser:
    def test_not_authenticated(self):
        request = MagicMock()
        request.state = MagicMock(spec=[])

        with pytest.raises(HTTPException) as exc_info:
            get_current_user(request)

        assert exc_info.value.status_code == 401
