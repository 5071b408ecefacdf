"""
Process-wide objects the lodging routers depend on.

The API talks to PocketBase as a superuser through one shared client. Each
operator's edits live in an editor held by the registry below.
"""

from __future__ import annotations

import asyncio
import logging

# ClientResponseError is not re-exported by the pocketbase package root
from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from pocketbase import PocketBase

from .services.editor_registry import EditorRegistry
from .settings import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()
pb_url = _settings.pocketbase_url
pb = PocketBase(pb_url)

editor_registry = EditorRegistry(
    pb,
    assignments_collection=_settings.assignments_collection,
    inventory_collection=_settings.inventory_collection,
    registrations_collection=_settings.registrations_collection,
    profiles_collection=_settings.profiles_collection,
    event_id=_settings.event_id,
)


async def authenticate_pb() -> None:
    """Sign the shared client in as the configured superuser.

    Raises:
        ClientResponseError: PocketBase rejected the credentials or is unreachable
    """
    email = _settings.pocketbase_admin_email
    try:
        await asyncio.to_thread(
            pb.collection("_superusers").auth_with_password, email, _settings.pocketbase_admin_password
        )
    except ClientResponseError as e:
        logger.error(f"PocketBase superuser login failed for {email} at {pb_url}: {e}")
        raise
    logger.info(f"Signed in to PocketBase at {pb_url} as {email}")


def get_editor_registry() -> EditorRegistry:
    """Registry dependency; tests override it with one over a mock client."""
    return editor_registry
