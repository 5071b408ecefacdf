"""
Assignment engine - selection and mutation of one night's working copy.

All operations take an explicit NightContext and run synchronously in
memory. Persistence happens only through NightEditor.save().

Operations return True when the working copy changed. Running out of
beds is not an error: the call simply returns False and nothing changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from .assignment_store import (
    AssignmentKey,
    AssignmentStore,
    assigned_occupant_ids,
    bed_assignments,
    free_beds,
)
from .errors import UnknownRoomError
from .models import BedAssignment, Registration, RoomInventoryEntry

logger = logging.getLogger(__name__)

COUPLE_SIZE = 2


class SyncState(str, Enum):
    CLEAN = "clean"  # working copy equals the last loaded or saved store
    DIRTY = "dirty"  # local edits not yet saved


@dataclass
class NightContext:
    """Everything the engine needs for one night.

    Attributes:
        night: Tour night being edited
        rooms: The night's inventory, already ordered by rooms_for_night()
        roster: Registered riders
        working_store: In-memory copy being edited
        baseline: Store as last loaded or saved
        selection: Selected rider ids in the order they were picked
        state: CLEAN or DIRTY
        operator_id: Recorded as assigned_by on new records
        remote_store: Latest remote snapshot seen while DIRTY, if any
    """

    night: int
    rooms: list[RoomInventoryEntry]
    roster: list[Registration]
    working_store: AssignmentStore = field(default_factory=dict)
    baseline: AssignmentStore = field(default_factory=dict)
    selection: list[str] = field(default_factory=list)
    state: SyncState = SyncState.CLEAN
    operator_id: str = ""
    remote_store: AssignmentStore | None = None

    @property
    def dirty(self) -> bool:
        return self.state is SyncState.DIRTY

    def mark_dirty(self) -> None:
        self.state = SyncState.DIRTY

    def room(self, room_id: str) -> RoomInventoryEntry:
        for room in self.rooms:
            if room.id == room_id:
                return room
        raise UnknownRoomError(room_id, self.night)

    def find_rider(self, rider_id: str) -> Registration | None:
        return next((rider for rider in self.roster if rider.has_id(rider_id)), None)

    def is_rider_assigned(self, rider_id: str) -> bool:
        occupants = assigned_occupant_ids(self.working_store)
        rider = self.find_rider(rider_id)
        if rider is None:
            return rider_id in occupants
        return rider.id in occupants or (rider.uid is not None and rider.uid in occupants)


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(UTC)


def _new_assignment(ctx: NightContext, rider: Registration, assigned_at: datetime) -> BedAssignment:
    return BedAssignment(
        occupant_id=rider.id or rider.uid or "",
        occupant_name=rider.full_name,
        assigned_at=assigned_at,
        assigned_by=ctx.operator_id,
    )


def toggle_selection(ctx: NightContext, rider_id: str) -> bool:
    """Add or remove a rider from the selection.

    The selection holds registration ids, so a rider's uid toggles the same
    entry. Riders missing from the roster or already assigned are ignored.
    """
    rider = ctx.find_rider(rider_id)
    if rider is None:
        logger.warning(f"Rider {rider_id} is not on the roster, not selecting")
        return False
    if ctx.is_rider_assigned(rider.id):
        return False
    if rider.id in ctx.selection:
        ctx.selection.remove(rider.id)
    else:
        ctx.selection.append(rider.id)
    return True


def clear_selection(ctx: NightContext) -> None:
    ctx.selection.clear()


def _selected_candidates(ctx: NightContext) -> list[Registration]:
    """Selected riders that exist on the roster and hold no record tonight."""
    candidates: list[Registration] = []
    seen: set[str] = set()
    for rider_id in ctx.selection:
        rider = ctx.find_rider(rider_id)
        if rider is None:
            logger.warning(f"Selected rider {rider_id} is not on the roster, skipping")
            continue
        if rider.id in seen or ctx.is_rider_assigned(rider.id):
            continue
        seen.add(rider.id)
        candidates.append(rider)
    return candidates


def assign_to_room(ctx: NightContext, room_id: str, now: datetime | None = None) -> bool:
    """Place the selected riders in a standard room.

    Exactly two riders are treated as a couple sharing one bed: the first
    bed with no occupant, or the room's first bed if none is empty. Any
    other count places one rider per fully free bed in selection order;
    riders beyond the free beds are dropped.

    Raises:
        UnknownRoomError: room_id is not in tonight's inventory
    """
    room = ctx.room(room_id)
    if not ctx.selection or room.is_pool:
        return False

    available = free_beds(ctx.working_store, room)
    if not available:
        logger.debug(f"Room {room_id} has no free bed on night {ctx.night}")
        return False

    candidates = _selected_candidates(ctx)
    if not candidates:
        return False

    assigned_at = _now(now)
    if len(ctx.selection) == COUPLE_SIZE and len(candidates) == COUPLE_SIZE:
        bed = next(
            (name for name in room.beds if not bed_assignments(ctx.working_store, room.id, name)),
            room.beds[0],
        )
        for idx, rider in enumerate(candidates):
            key = AssignmentKey.for_bed(room.id, bed, suffix=str(idx))
            ctx.working_store[key] = _new_assignment(ctx, rider, assigned_at)
        logger.info(f"Night {ctx.night}: {candidates[0].full_name} & {candidates[1].full_name} share {room.id}/{bed}")
    else:
        placed = candidates[: len(available)]
        for bed, rider in zip(available, placed, strict=False):
            key = AssignmentKey.for_bed(room.id, bed, suffix="0")
            ctx.working_store[key] = _new_assignment(ctx, rider, assigned_at)
        dropped = len(candidates) - len(placed)
        if dropped:
            logger.info(f"Night {ctx.night}: room {room.id} took {len(placed)} riders, {dropped} left unplaced")
        else:
            logger.info(f"Night {ctx.night}: placed {len(placed)} rider(s) in {room.id}")

    ctx.selection.clear()
    ctx.mark_dirty()
    return True


def _pool_bed_id(ctx: NightContext, room: RoomInventoryEntry, assigned_at: datetime) -> AssignmentKey:
    prefix = "tent" if room.is_camping else "own"
    stamp = int(assigned_at.timestamp() * 1000)
    key = AssignmentKey(room_id=room.id, bed_id=f"{prefix}-{stamp}")
    while key in ctx.working_store:
        stamp += 1
        key = AssignmentKey(room_id=room.id, bed_id=f"{prefix}-{stamp}")
    return key


def assign_to_pool(
    ctx: NightContext,
    pool_room_id: str,
    rider_id: str | None = None,
    now: datetime | None = None,
) -> bool:
    """Add one rider to the night's camping or own-accommodation pool.

    Pools have no capacity limit. When rider_id is omitted the first
    selected rider is used. Only that rider leaves the selection.

    Raises:
        UnknownRoomError: pool_room_id is not in tonight's inventory
    """
    room = ctx.room(pool_room_id)
    if not room.is_pool:
        return False

    if rider_id is None:
        if not ctx.selection:
            return False
        rider_id = ctx.selection[0]

    rider = ctx.find_rider(rider_id)
    if rider is None or ctx.is_rider_assigned(rider.id):
        return False

    assigned_at = _now(now)
    key = _pool_bed_id(ctx, room, assigned_at)
    ctx.working_store[key] = _new_assignment(ctx, rider, assigned_at)
    ctx.selection[:] = [selected for selected in ctx.selection if not rider.has_id(selected)]
    ctx.mark_dirty()
    logger.info(f"Night {ctx.night}: {rider.full_name} added to {room.kind.value} pool {room.id}")
    return True


def remove_assignment(ctx: NightContext, key: AssignmentKey | str) -> bool:
    """Delete the record at key. Missing keys are ignored.

    Raises:
        InvalidAssignmentKeyError: key is a string that does not parse
    """
    if isinstance(key, str):
        key = AssignmentKey.parse(key)
    removed = ctx.working_store.pop(key, None)
    if removed is None:
        return False
    ctx.mark_dirty()
    logger.info(f"Night {ctx.night}: removed {removed.occupant_name} from {key}")
    return True
