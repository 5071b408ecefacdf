#!/usr/bin/env python3
"""
Seed the room_inventory collection from a JSON file.

The file holds a list of inventory entries (snake_case or the legacy
camelCase field names). Entries are upserted by room id, and every night
that needs room assignments also gets an "On Their Own" pool.

Usage:
    python scripts/seed_room_inventory.py rooms.json
    python scripts/seed_room_inventory.py rooms.json --dry-run
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]  # noqa: E402

from lodging.inventory import OWN_ACCOMMODATION_LABEL, room_id_for  # noqa: E402
from lodging.logging_config import configure_logging  # noqa: E402
from lodging.models import RoomInventoryEntry  # noqa: E402
from lodging.nights import NIGHT_INFO, ROOM_ASSIGNMENT_NIGHTS  # noqa: E402
from pocketbase import PocketBase  # noqa: E402

logger = logging.getLogger(__name__)

OWN_POOL_CAPACITY = 50


def own_accommodation_pools() -> list[RoomInventoryEntry]:
    """One "On Their Own" pool per assignment night."""
    return [
        RoomInventoryEntry(
            id=f"own-day{night}",
            day=night,
            suite_name=OWN_ACCOMMODATION_LABEL,
            room_number="NA",
            beds=(),
            is_own_accommodation=True,
            location=NIGHT_INFO[night].location,
            max_occupancy=OWN_POOL_CAPACITY,
        )
        for night in ROOM_ASSIGNMENT_NIGHTS
    ]


def load_entries(raw_entries: list[dict[str, Any]]) -> list[RoomInventoryEntry]:
    """Validate raw entries. Entries without an id get one from suite and room number."""
    entries: list[RoomInventoryEntry] = []
    for raw in raw_entries:
        data = dict(raw)
        if not data.get("id"):
            suite = data.get("suite_name") or data.get("suiteName") or ""
            number = data.get("room_number") or data.get("roomNumber") or "R1"
            data["id"] = room_id_for(suite, number)
        try:
            entries.append(RoomInventoryEntry.model_validate(data))
        except ValidationError as e:
            logger.warning(f"Skipping invalid inventory entry {data['id']}: {e}")
    return entries


def with_own_pools(entries: list[RoomInventoryEntry]) -> list[RoomInventoryEntry]:
    """Add the missing own-accommodation pools; nights that already have one keep theirs."""
    covered = {entry.day for entry in entries if entry.is_own_accommodation}
    return entries + [pool for pool in own_accommodation_pools() if pool.day not in covered]


def to_record(entry: RoomInventoryEntry) -> dict[str, Any]:
    record = entry.model_dump(mode="json", exclude={"id"})
    record["room_id"] = entry.id
    return record


def upsert_inventory(pb: PocketBase, entries: list[RoomInventoryEntry], collection: str = "room_inventory") -> int:
    """Create or update one record per entry, matched on room_id. Returns the number written."""
    written = 0
    for entry in entries:
        record = to_record(entry)
        try:
            existing = pb.collection(collection).get_list(
                page=1, per_page=1, query_params={"filter": f'room_id = "{entry.id}"'}
            )
            if existing.items:
                pb.collection(collection).update(existing.items[0].id, record)
                logger.debug(f"Updated {entry.id}")
            else:
                pb.collection(collection).create(record)
                logger.debug(f"Created {entry.id}")
            written += 1
        except ClientResponseError as e:
            logger.error(f"Failed to write {entry.id} (day {entry.day}): {e}")
    return written


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed room inventory for the tour")
    parser.add_argument("inventory_file", type=Path, help="JSON file with a list of inventory entries")
    parser.add_argument("--collection", default=os.getenv("INVENTORY_COLLECTION", "room_inventory"))
    parser.add_argument("--no-own-pools", action="store_true", help="Do not add On Their Own pools")
    parser.add_argument("--dry-run", action="store_true", help="Validate and report without writing")
    args = parser.parse_args()

    configure_logging(source="seed")

    entries = load_entries(json.loads(args.inventory_file.read_text()))
    if not args.no_own_pools:
        entries = with_own_pools(entries)

    by_night: dict[int, int] = {}
    for entry in entries:
        by_night[entry.day] = by_night.get(entry.day, 0) + 1
    for night in sorted(by_night):
        logger.info(f"Day {night}: {by_night[night]} inventory entries")

    if args.dry_run:
        logger.info(f"Dry run: {len(entries)} entries validated, nothing written")
        return

    from scripts.utils.auth import authenticate_pocketbase

    pb = authenticate_pocketbase()
    written = upsert_inventory(pb, entries, args.collection)
    logger.info(f"Wrote {written} of {len(entries)} inventory entries")
    if written < len(entries):
        sys.exit(1)


if __name__ == "__main__":
    main()
