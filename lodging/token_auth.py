"""
Operator token validation against PocketBase.

Operators sign in to PocketBase from the admin UI and send that token as a
bearer token. The API confirms it by asking PocketBase to refresh it, so no
signing keys are held here.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import logging
import time
from typing import Any, cast

import httpx

logger = logging.getLogger(__name__)

SUPERUSERS_COLLECTION = "_superusers"


def extract_bearer_token(authorization_header: str | None) -> str | None:
    if not authorization_header:
        return None

    parts = authorization_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def peek_token_claims(token: str) -> dict[str, Any]:
    """Claims of a JWT without verifying the signature. Only for routing decisions."""
    parts = token.split(".")
    if len(parts) != 3:
        return {}
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload))
    except (binascii.Error, ValueError):
        return {}
    return cast(dict[str, Any], claims) if isinstance(claims, dict) else {}


class OperatorTokenValidator:
    """Confirms operator tokens with the PocketBase auth-refresh endpoint.

    Successful validations are cached briefly, keyed by a hash of the token.
    """

    def __init__(self, pocketbase_url: str, auth_collection: str = "users", cache_ttl: float = 60.0):
        self.pocketbase_url = pocketbase_url.rstrip("/")
        self.auth_collection = auth_collection
        self.cache_ttl = cache_ttl
        self._cache: dict[str, tuple[dict[str, Any], float]] = {}

    def _cache_key(self, token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()[:32]

    def validate_token(self, token: str) -> dict[str, Any] | None:
        """Return the operator's PocketBase record, or None if the token is not accepted."""
        unverified = peek_token_claims(token)
        if unverified.get("collectionName") == SUPERUSERS_COLLECTION:
            logger.warning("Rejected superuser token; API access requires an operator account")
            return None

        cache_key = self._cache_key(token)
        cached = self._cache.get(cache_key)
        if cached is not None and time.time() < cached[1]:
            return cached[0]

        try:
            response = httpx.post(
                f"{self.pocketbase_url}/api/collections/{self.auth_collection}/auth-refresh",
                headers={"Authorization": f"Bearer {token}"},
                timeout=5.0,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Operator token validation failed: {type(e).__name__}: {e}")
            return None

        if response.status_code != 200:
            logger.debug(f"auth-refresh returned status {response.status_code}")
            return None

        record = cast(dict[str, Any], response.json().get("record", {}))
        self._cache[cache_key] = (record, time.time() + self.cache_ttl)
        logger.debug(f"Validated token for operator {record.get('id')}")
        return record
