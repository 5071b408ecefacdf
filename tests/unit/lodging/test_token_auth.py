"""Tests for token_auth - bearer parsing and PocketBase token validation."""

from __future__ import annotations

import base64
import json
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest

from lodging.token_auth import OperatorTokenValidator, extract_bearer_token, peek_token_claims


def create_mock_token(payload: dict[str, Any]) -> str:
    """Unsigned token, only good for claim parsing."""

    def encode_part(data: dict[str, Any]) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()

    signature = base64.urlsafe_b64encode(b"fake-signature").rstrip(b"=").decode()
    return f"{encode_part({'alg': 'HS256', 'typ': 'JWT'})}.{encode_part(payload)}.{signature}"


def refresh_response(status_code: int = 200, record: dict[str, Any] | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = {"token": "new", "record": record or {"id": "op-1", "email": "op@tour.local"}}
    return response


class TestExtractBearerToken:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("Bearer abc.def.ghi", "abc.def.ghi"),
            ("bearer abc", "abc"),
            ("Basic abc", None),
            ("Bearer", None),
            ("", None),
            (None, None),
        ],
    )
    def test_headers(self, header, expected):
        assert extract_bearer_token(header) == expected


class TestPeekTokenClaims:
    def test_reads_payload(self):
        token = create_mock_token({"id": "op-1", "collectionName": "users"})
        assert peek_token_claims(token) == {"id": "op-1", "collectionName": "users"}

    @pytest.mark.parametrize("token", ["not-a-token", "a.%%%.c", "a.b"])
    def test_malformed_tokens(self, token):
        assert peek_token_claims(token) == {}


class TestOperatorTokenValidator:
    def test_valid_token_returns_record(self):
        validator = OperatorTokenValidator("http://pb:8090/")
        token = create_mock_token({"id": "op-1", "collectionName": "users"})

        with patch("lodging.token_auth.httpx.post", return_value=refresh_response()) as post:
            record = validator.validate_token(token)

        assert record == {"id": "op-1", "email": "op@tour.local"}
        assert post.call_args.args[0] == "http://pb:8090/api/collections/users/auth-refresh"
        assert post.call_args.kwargs["headers"] == {"Authorization": f"Bearer {token}"}

    def test_result_is_cached(self):
        validator = OperatorTokenValidator("http://pb:8090")
        token = create_mock_token({"id": "op-1"})

        with patch("lodging.token_auth.httpx.post", return_value=refresh_response()) as post:
            validator.validate_token(token)
            validator.validate_token(token)

        assert post.call_count == 1

    def test_rejected_token(self):
        validator = OperatorTokenValidator("http://pb:8090")
        with patch("lodging.token_auth.httpx.post", return_value=refresh_response(status_code=401)):
            assert validator.validate_token(create_mock_token({"id": "op-1"})) is None

    def test_superuser_token_never_sent(self):
        validator = OperatorTokenValidator("http://pb:8090")
        token = create_mock_token({"id": "root", "collectionName": "_superusers"})

        with patch("lodging.token_auth.httpx.post") as post:
            assert validator.validate_token(token) is None

        post.assert_not_called()

    def test_network_error(self):
        validator = OperatorTokenValidator("http://pb:8090")
        with patch("lodging.token_auth.httpx.post", side_effect=httpx.ConnectError("refused")):
            assert validator.validate_token(create_mock_token({"id": "op-1"})) is None
