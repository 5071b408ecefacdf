"""Read-only access to registrations, rider profiles and room inventory.

These are loaded once per admin session. Records that fail validation
are logged and skipped so one bad document cannot block a night.
"""

from __future__ import annotations

import logging
from typing import Any

from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]
from pydantic import ValidationError

from pocketbase import PocketBase

from ..errors import PersistenceError
from ..models import Registration, RiderProfile, RoomInventoryEntry

logger = logging.getLogger(__name__)


def _record_fields(record: Any, names: tuple[str, ...]) -> dict[str, Any]:
    return {name: getattr(record, name) for name in names if getattr(record, name, None) is not None}


class RosterRepository:
    """Repository for the collaborator collections the engine reads."""

    def __init__(
        self,
        pb_client: PocketBase,
        registrations_collection: str = "registrations",
        profiles_collection: str = "users",
        inventory_collection: str = "room_inventory",
    ) -> None:
        self.pb = pb_client
        self.registrations_collection = registrations_collection
        self.profiles_collection = profiles_collection
        self.inventory_collection = inventory_collection

    def _full_list(self, collection: str, query_params: dict[str, Any] | None = None) -> list[Any]:
        try:
            return list(self.pb.collection(collection).get_full_list(query_params=query_params or {}))
        except ClientResponseError as e:
            raise PersistenceError(f"Failed to read {collection}: {e}") from e

    def get_registrations(self, event_id: str = "") -> list[Registration]:
        """Tour registrations, limited to one event when event_id is given."""
        query_params = {"filter": f'event = "{event_id}"'} if event_id else {}
        registrations: list[Registration] = []
        for record in self._full_list(self.registrations_collection, query_params):
            data = _record_fields(record, ("uid", "full_name", "nickname", "email"))
            data["id"] = record.id
            try:
                registrations.append(Registration.model_validate(data))
            except ValidationError as e:
                logger.warning(f"Skipping registration {record.id}: {e}")
        logger.debug(f"Loaded {len(registrations)} registrations")
        return registrations

    def get_profiles(self) -> dict[str, RiderProfile]:
        """Profiles keyed by record id (the rider's auth uid)."""
        profiles: dict[str, RiderProfile] = {}
        for record in self._full_list(self.profiles_collection):
            data = _record_fields(
                record, ("display_name", "email", "preferred_roommate_name", "accommodation_selections")
            )
            data["id"] = record.id
            try:
                profiles[record.id] = RiderProfile.model_validate(data)
            except ValidationError as e:
                logger.warning(f"Skipping profile {record.id}: {e}")
        logger.debug(f"Loaded {len(profiles)} rider profiles")
        return profiles

    def get_inventory(self, night: int | None = None) -> list[RoomInventoryEntry]:
        """Room inventory, optionally limited to one night.

        Inventory records carry their stable room id in ``room_id``; the
        PocketBase record id is only used when that field is empty.
        """
        query_params = {"filter": f"day = {night}"} if night is not None else {}
        rooms: list[RoomInventoryEntry] = []
        for record in self._full_list(self.inventory_collection, query_params):
            data = _record_fields(
                record,
                (
                    "day",
                    "suite_name",
                    "room_number",
                    "beds",
                    "is_camping",
                    "is_own_accommodation",
                    "location",
                    "max_occupancy",
                ),
            )
            data["id"] = getattr(record, "room_id", None) or record.id
            try:
                rooms.append(RoomInventoryEntry.model_validate(data))
            except ValidationError as e:
                logger.warning(f"Skipping inventory entry {data['id']}: {e}")
        logger.debug(f"Loaded {len(rooms)} inventory entries")
        return rooms
