"""Room inventory catalog: which rooms and pools exist on a given night."""

from __future__ import annotations

import re
from collections.abc import Iterable

from .models import RoomInventoryEntry, RoomKind

CAMPING_LABEL = "Camping"
OWN_ACCOMMODATION_LABEL = "On Their Own"


def _room_sort_key(room: RoomInventoryEntry) -> tuple[bool, str, str, str]:
    return (room.is_camping, room.suite_name.casefold(), room.room_number.casefold(), room.id)


def rooms_for_night(inventory: Iterable[RoomInventoryEntry], night: int) -> list[RoomInventoryEntry]:
    """Rooms for one night, camping pools last, then by suite name."""
    return sorted((room for room in inventory if room.day == night), key=_room_sort_key)


def standard_rooms(rooms: Iterable[RoomInventoryEntry]) -> list[RoomInventoryEntry]:
    return [room for room in rooms if room.is_standard]


def find_pool(rooms: Iterable[RoomInventoryEntry], kind: RoomKind) -> RoomInventoryEntry | None:
    return next((room for room in rooms if room.kind == kind), None)


def room_label(room: RoomInventoryEntry) -> str:
    """Printable room name; the default room number R1 is left off."""
    if room.is_camping:
        return CAMPING_LABEL
    if room.is_own_accommodation:
        return OWN_ACCOMMODATION_LABEL
    if room.room_number != "R1":
        return f"{room.suite_name} {room.room_number}"
    return room.suite_name


def room_id_for(suite_name: str, room_number: str = "R1") -> str:
    """Stable room id: ("Best Western 1", "R1") -> "best-western-1-r1"."""
    slug = re.sub(r"[^a-z0-9]+", "-", suite_name.lower())
    return f"{slug}-{room_number.lower()}"
