"""
Occupancy and preference analysis for one night.

Pure functions over the night's rooms, an assignment store and the roster.
Nothing here mutates state or performs I/O.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from .assignment_store import (
    AssignmentKey,
    assigned_occupant_ids,
    bed_assignments,
    free_beds,
    is_room_full,
    occupied_beds,
    room_assignments,
)
from .engine import NightContext
from .inventory import room_label, standard_rooms
from .models import (
    Accommodation,
    BedAssignment,
    NightSelection,
    Registration,
    RiderProfile,
    RiderView,
    RoomInventoryEntry,
    RoomKind,
)
from .nights import NightInfo, get_night_info, night_key

AssignmentMap = Mapping[AssignmentKey, BedAssignment]


class OccupancyStats(BaseModel):
    """Headline numbers for a night. Bed counts cover standard rooms only."""

    unassigned_count: int = 0
    total_beds: int = 0
    assigned_beds: int = 0
    full_rooms: int = 0
    total_rooms: int = 0


class OccupantView(BaseModel):
    key: str
    occupant_id: str
    display_name: str


class BedView(BaseModel):
    bed: str
    occupants: list[OccupantView] = Field(default_factory=list)


class RoomOccupancy(BaseModel):
    room_id: str
    label: str
    kind: RoomKind
    beds: list[BedView] = Field(default_factory=list)
    occupant_count: int = 0
    available_bed_count: int = 0
    is_full: bool = False
    can_assign: bool = False
    preference_satisfied: bool = False


class PoolOccupancy(BaseModel):
    room_id: str
    label: str
    kind: RoomKind
    occupants: list[OccupantView] = Field(default_factory=list)


class NightOccupancy(BaseModel):
    """The operator's view of a night being edited."""

    info: NightInfo
    dirty: bool
    has_remote_changes: bool = False
    selected_rider_ids: list[str] = Field(default_factory=list)
    riders: list[RiderView] = Field(default_factory=list)
    rooms: list[RoomOccupancy] = Field(default_factory=list)
    pools: list[PoolOccupancy] = Field(default_factory=list)
    stats: OccupancyStats


class SelectionSummary(BaseModel):
    """How riders chose to spend one night."""

    night: int
    hotel: int = 0
    camping: int = 0
    own: int = 0
    no_selection: int = 0
    single_room: int = 0
    dinner: int = 0
    breakfast: int = 0
    total: int = 0


# ========================================
# Lookups
# ========================================


def find_profile(profiles: Mapping[str, RiderProfile], rider: Registration) -> RiderProfile | None:
    """Profile for a rider, trying the registration id before the uid."""
    profile = profiles.get(rider.id)
    if profile is None and rider.uid:
        profile = profiles.get(rider.uid)
    return profile


def lookup_selection(profiles: Mapping[str, RiderProfile], rider: Registration, night: int) -> NightSelection | None:
    """A rider's selection for the night, trying the registration id then the uid.

    Both profiles are consulted: a profile found under the id that has no
    entry for this night does not stop the uid lookup.
    """
    key = night_key(night)
    for rider_id in (rider.id, rider.uid):
        if not rider_id:
            continue
        profile = profiles.get(rider_id)
        if profile is not None and key in profile.accommodation_selections:
            return profile.accommodation_selections[key]
    return None


def lookup_preferred_roommate(profiles: Mapping[str, RiderProfile], rider: Registration) -> str | None:
    for rider_id in (rider.id, rider.uid):
        if not rider_id:
            continue
        profile = profiles.get(rider_id)
        if profile is not None and profile.preferred_roommate_name:
            return profile.preferred_roommate_name
    return None


def display_name(
    occupant_id: str,
    fallback: str,
    roster: Iterable[Registration],
    profiles: Mapping[str, RiderProfile],
) -> str:
    """Profile display name, then registration full name, then the stored name."""
    rider = next((r for r in roster if r.has_id(occupant_id)), None)
    profile = profiles.get(occupant_id)
    if profile is None and rider is not None:
        profile = find_profile(profiles, rider)
    if profile is not None and profile.display_name:
        return profile.display_name
    if rider is not None and rider.full_name:
        return rider.full_name
    return fallback


# ========================================
# Riders
# ========================================


def _rider_sort_key(rider: RiderView) -> tuple[bool, str, str]:
    return (rider.is_assigned, rider.full_name.casefold(), rider.id)


def build_rider_views(
    roster: Iterable[Registration],
    profiles: Mapping[str, RiderProfile],
    store: AssignmentMap,
    night: int,
) -> list[RiderView]:
    """Riders for the night, unassigned first, then alphabetical.

    A rider with no recorded selection is treated as staying in the hotel.
    """
    occupants = assigned_occupant_ids(store)
    views: list[RiderView] = []
    for rider in roster:
        selection = lookup_selection(profiles, rider, night)
        accommodation = selection.accommodation if selection and selection.accommodation else None
        is_assigned = rider.id in occupants or (rider.uid is not None and rider.uid in occupants)
        views.append(
            RiderView(
                id=rider.id,
                uid=rider.uid,
                full_name=rider.full_name,
                nickname=rider.nickname,
                email=rider.email,
                accommodation=accommodation or Accommodation.HOTEL,
                prefers_single_room=selection.prefers_single_room if selection else False,
                preferred_roommate_name=lookup_preferred_roommate(profiles, rider),
                is_assigned=is_assigned,
            )
        )
    return sorted(views, key=_rider_sort_key)


def unassigned_count(riders: Iterable[RiderView]) -> int:
    return sum(1 for rider in riders if not rider.is_assigned)


def _same_name(preferred: str | None, name: str) -> bool:
    if not preferred:
        return False
    return preferred.strip().casefold() == name.strip().casefold()


def is_preference_match(rider_a: RiderView, rider_b: RiderView) -> bool:
    """True when either rider named the other as preferred roommate."""
    return _same_name(rider_a.preferred_roommate_name, rider_b.full_name) or _same_name(
        rider_b.preferred_roommate_name, rider_a.full_name
    )


def _rider_for_occupant(riders: Iterable[RiderView], occupant_id: str) -> RiderView | None:
    return next((rider for rider in riders if rider.has_id(occupant_id)), None)


def preference_satisfied(store: AssignmentMap, room: RoomInventoryEntry, riders: Iterable[RiderView]) -> bool:
    """A room satisfies preferences when it holds exactly two matching riders."""
    entries = room_assignments(store, room.id)
    if len(entries) != 2:
        return False
    rider_list = list(riders)
    first = _rider_for_occupant(rider_list, entries[0][1].occupant_id)
    second = _rider_for_occupant(rider_list, entries[1][1].occupant_id)
    if first is None or second is None:
        return False
    return is_preference_match(first, second)


# ========================================
# Rooms and statistics
# ========================================


def occupancy_stats(
    rooms: Iterable[RoomInventoryEntry],
    store: AssignmentMap,
    riders: Iterable[RiderView],
) -> OccupancyStats:
    """Counters for the stats bar. Pools never count toward beds or rooms."""
    standard = standard_rooms(rooms)
    standard_ids = {room.id for room in standard}
    return OccupancyStats(
        unassigned_count=unassigned_count(riders),
        total_beds=sum(len(room.beds) for room in standard),
        assigned_beds=sum(1 for key in store if key.room_id in standard_ids),
        full_rooms=sum(1 for room in standard if is_room_full(store, room)),
        total_rooms=len(standard),
    )


def _occupant_views(
    entries: Iterable[tuple[AssignmentKey, BedAssignment]],
    roster: Iterable[Registration],
    profiles: Mapping[str, RiderProfile],
) -> list[OccupantView]:
    roster_list = list(roster)
    return [
        OccupantView(
            key=str(key),
            occupant_id=assignment.occupant_id,
            display_name=display_name(assignment.occupant_id, assignment.occupant_name, roster_list, profiles),
        )
        for key, assignment in entries
    ]


def describe_room(
    room: RoomInventoryEntry,
    store: AssignmentMap,
    riders: list[RiderView],
    roster: list[Registration],
    profiles: Mapping[str, RiderProfile],
    selection_size: int = 0,
) -> RoomOccupancy:
    available = len(free_beds(store, room))
    return RoomOccupancy(
        room_id=room.id,
        label=room_label(room),
        kind=room.kind,
        beds=[
            BedView(bed=bed, occupants=_occupant_views(bed_assignments(store, room.id, bed), roster, profiles))
            for bed in room.beds
        ],
        occupant_count=len(room_assignments(store, room.id)),
        available_bed_count=available,
        is_full=len(occupied_beds(store, room)) == len(room.beds),
        can_assign=selection_size > 0 and available > 0,
        preference_satisfied=preference_satisfied(store, room, riders),
    )


def describe_pool(
    room: RoomInventoryEntry,
    store: AssignmentMap,
    roster: list[Registration],
    profiles: Mapping[str, RiderProfile],
) -> PoolOccupancy:
    return PoolOccupancy(
        room_id=room.id,
        label=room_label(room),
        kind=room.kind,
        occupants=_occupant_views(room_assignments(store, room.id), roster, profiles),
    )


def describe_night(ctx: NightContext, profiles: Mapping[str, RiderProfile]) -> NightOccupancy:
    """Assemble the operator view of the context's working copy."""
    riders = build_rider_views(ctx.roster, profiles, ctx.working_store, ctx.night)
    return NightOccupancy(
        info=get_night_info(ctx.night),
        dirty=ctx.dirty,
        has_remote_changes=ctx.remote_store is not None,
        selected_rider_ids=list(ctx.selection),
        riders=riders,
        rooms=[
            describe_room(room, ctx.working_store, riders, ctx.roster, profiles, len(ctx.selection))
            for room in ctx.rooms
            if room.is_standard
        ],
        pools=[describe_pool(room, ctx.working_store, ctx.roster, profiles) for room in ctx.rooms if room.is_pool],
        stats=occupancy_stats(ctx.rooms, ctx.working_store, riders),
    )


# ========================================
# Selection summary
# ========================================

_ACCOMMODATION_ORDER = {Accommodation.HOTEL: 1, Accommodation.CAMPING: 2, Accommodation.OWN: 3}


def summarize_selections(
    roster: Iterable[Registration],
    profiles: Mapping[str, RiderProfile],
    night: int,
) -> SelectionSummary:
    """Count hotel, camping and own choices plus meal requests for a night."""
    summary = SelectionSummary(night=night)
    for rider in roster:
        summary.total += 1
        selection = lookup_selection(profiles, rider, night)
        if selection is None or selection.accommodation is None:
            summary.no_selection += 1
        elif selection.accommodation is Accommodation.HOTEL:
            summary.hotel += 1
            if selection.prefers_single_room:
                summary.single_room += 1
        elif selection.accommodation is Accommodation.CAMPING:
            summary.camping += 1
        else:
            summary.own += 1
        if selection is not None and selection.dinner:
            summary.dinner += 1
        if selection is not None and selection.breakfast:
            summary.breakfast += 1
    return summary


def riders_by_selection(
    roster: Iterable[Registration],
    profiles: Mapping[str, RiderProfile],
    night: int,
) -> list[Registration]:
    """Roster ordered hotel, camping, own, then riders who made no choice."""

    def order(rider: Registration) -> tuple[int, str]:
        selection = lookup_selection(profiles, rider, night)
        rank = _ACCOMMODATION_ORDER.get(selection.accommodation, 4) if selection and selection.accommodation else 4
        return (rank, rider.full_name.casefold())

    return sorted(roster, key=order)
