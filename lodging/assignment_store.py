"""
Assignment store - addressing and querying one night's bed assignments.

A night's assignments are a mapping from AssignmentKey to BedAssignment.
Keys address a bed slot inside a room; two keys that share a room and bed
but differ in suffix are co-occupants of the same physical bed.

The persisted document keeps the flat string form
``{room_id}__{bed_id}__{suffix}`` (suffix optional), so existing nightly
documents stay readable. Inside the process keys are always structured.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from .errors import InvalidAssignmentKeyError
from .models import BedAssignment, RoomInventoryEntry

logger = logging.getLogger(__name__)

KEY_DELIMITER = "__"


def slugify_bed(bed_name: str) -> str:
    """Bed id used in keys: "Bed 1" -> "bed-1"."""
    return re.sub(r"\s+", "-", bed_name.strip().lower())


@dataclass(frozen=True)
class AssignmentKey:
    room_id: str
    bed_id: str
    suffix: str | None = None

    def __post_init__(self) -> None:
        for part_name in ("room_id", "bed_id"):
            value = getattr(self, part_name)
            if not value:
                raise InvalidAssignmentKeyError(f"Assignment key {part_name} must not be empty")
            if KEY_DELIMITER in value:
                raise InvalidAssignmentKeyError(f"Assignment key {part_name} {value!r} contains {KEY_DELIMITER!r}")
        if self.suffix is not None and (not self.suffix or KEY_DELIMITER in self.suffix):
            raise InvalidAssignmentKeyError(f"Invalid assignment key suffix {self.suffix!r}")

    @classmethod
    def for_bed(cls, room_id: str, bed_name: str, suffix: str | None = None) -> AssignmentKey:
        return cls(room_id=room_id, bed_id=slugify_bed(bed_name), suffix=suffix)

    @classmethod
    def parse(cls, raw: str) -> AssignmentKey:
        parts = raw.split(KEY_DELIMITER)
        if len(parts) == 2:
            return cls(room_id=parts[0], bed_id=parts[1])
        if len(parts) == 3:
            return cls(room_id=parts[0], bed_id=parts[1], suffix=parts[2])
        raise InvalidAssignmentKeyError(f"Cannot parse assignment key {raw!r}")

    @property
    def bed_slot(self) -> tuple[str, str]:
        return (self.room_id, self.bed_id)

    def sort_key(self) -> tuple[str, str, int, str]:
        suffix = self.suffix or ""
        return (self.room_id, self.bed_id, len(suffix), suffix)

    def __str__(self) -> str:
        parts = [self.room_id, self.bed_id]
        if self.suffix is not None:
            parts.append(self.suffix)
        return KEY_DELIMITER.join(parts)


AssignmentStore = dict[AssignmentKey, BedAssignment]


def room_assignments(
    store: Mapping[AssignmentKey, BedAssignment], room_id: str
) -> list[tuple[AssignmentKey, BedAssignment]]:
    """All records in a room, ordered by bed then suffix."""
    entries = [(key, assignment) for key, assignment in store.items() if key.room_id == room_id]
    return sorted(entries, key=lambda item: item[0].sort_key())


def bed_assignments(
    store: Mapping[AssignmentKey, BedAssignment], room_id: str, bed_name: str
) -> list[tuple[AssignmentKey, BedAssignment]]:
    slot = (room_id, slugify_bed(bed_name))
    entries = [(key, assignment) for key, assignment in store.items() if key.bed_slot == slot]
    return sorted(entries, key=lambda item: item[0].sort_key())


def occupied_beds(store: Mapping[AssignmentKey, BedAssignment], room: RoomInventoryEntry) -> list[str]:
    """Bed names of the room carrying at least one occupant, in bed order."""
    slots = {key.bed_slot for key in store if key.room_id == room.id}
    return [bed for bed in room.beds if (room.id, slugify_bed(bed)) in slots]


def free_beds(store: Mapping[AssignmentKey, BedAssignment], room: RoomInventoryEntry) -> list[str]:
    """Bed names with no occupant under any suffix, in bed order."""
    slots = {key.bed_slot for key in store if key.room_id == room.id}
    return [bed for bed in room.beds if (room.id, slugify_bed(bed)) not in slots]


def is_room_full(store: Mapping[AssignmentKey, BedAssignment], room: RoomInventoryEntry) -> bool:
    """A standard room is full when every bed has at least one occupant.

    A couple sharing one bed counts as one occupied bed.
    """
    if room.is_pool:
        return False
    return len(occupied_beds(store, room)) == len(room.beds)


def assigned_occupant_ids(store: Mapping[AssignmentKey, BedAssignment]) -> set[str]:
    return {assignment.occupant_id for assignment in store.values()}


def store_from_document(data: Mapping[str, Any] | None) -> AssignmentStore:
    """Build a store from a persisted ``{key: record}`` document.

    Entries with unparseable keys or records are logged and skipped.
    """
    store: AssignmentStore = {}
    for raw_key, raw_assignment in (data or {}).items():
        try:
            key = AssignmentKey.parse(raw_key)
            store[key] = BedAssignment.model_validate(raw_assignment)
        except (InvalidAssignmentKeyError, ValidationError) as e:
            logger.warning(f"Skipping malformed assignment {raw_key!r}: {e}")
    return store


def store_to_document(store: Mapping[AssignmentKey, BedAssignment]) -> dict[str, dict[str, Any]]:
    ordered = sorted(store.items(), key=lambda item: item[0].sort_key())
    return {str(key): assignment.model_dump(mode="json") for key, assignment in ordered}
