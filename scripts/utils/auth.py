#!/usr/bin/env python3
"""
PocketBase admin login for operator scripts.
Credentials come from the environment (or .env), never from the script.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

# ClientResponseError is not re-exported by the pocketbase package root
from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from pocketbase import PocketBase

logger = logging.getLogger(__name__)


def authenticate_pocketbase(pb_url: str | None = None) -> PocketBase:
    """
    Authenticate with PocketBase as a superuser.

    Args:
        pb_url: PocketBase URL; defaults to POCKETBASE_URL or http://127.0.0.1:8090

    Raises:
        ClientResponseError: If authentication fails
    """
    load_dotenv()
    pb = PocketBase(pb_url or os.getenv("POCKETBASE_URL", "http://127.0.0.1:8090"))

    admin_email = os.getenv("POCKETBASE_ADMIN_EMAIL", "admin@tour.local")
    admin_password = os.getenv("POCKETBASE_ADMIN_PASSWORD", "")

    try:
        pb.collection("_superusers").auth_with_password(admin_email, admin_password)
    except ClientResponseError as e:
        logger.error(f"Failed to authenticate with PocketBase as {admin_email}: {e}")
        logger.error("Make sure POCKETBASE_ADMIN_EMAIL and POCKETBASE_ADMIN_PASSWORD are set correctly")
        raise
    return pb
