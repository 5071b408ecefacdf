"""
Report grouping for printed room lists.

Turns a persisted night of assignments into four ordered groups (single
rooms, double/multi rooms, camping, on their own). The output depends only
on the store's contents, never on its iteration order. Pagination and page
layout belong to the ReportSink.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from typing import Protocol

from pydantic import BaseModel, Field

from .assignment_store import AssignmentKey
from .inventory import room_label, rooms_for_night
from .models import BedAssignment, RoomInventoryEntry
from .nights import get_night_info

OCCUPANT_SEPARATOR = " & "

SINGLE_ROOMS = "Single Rooms"
DOUBLE_ROOMS = "Double Rooms"
CAMPING = "Camping"
ON_THEIR_OWN = "On Their Own"

NameResolver = Callable[[BedAssignment], str]


class ReportRoom(BaseModel):
    room_id: str
    label: str
    occupants: list[str] = Field(default_factory=list)

    def render(self) -> str:
        return f"{self.label}: {OCCUPANT_SEPARATOR.join(self.occupants)}"


class LodgingReport(BaseModel):
    night: int
    title: str
    subtitle: str
    date: str
    single_rooms: list[ReportRoom] = Field(default_factory=list)
    double_rooms: list[ReportRoom] = Field(default_factory=list)
    camping: list[str] = Field(default_factory=list)
    on_their_own: list[str] = Field(default_factory=list)

    def sections(self) -> dict[str, list[str]]:
        """Group name -> printable lines. Empty groups are left out."""
        groups = {
            SINGLE_ROOMS: [room.render() for room in self.single_rooms],
            DOUBLE_ROOMS: [room.render() for room in self.double_rooms],
            CAMPING: list(self.camping),
            ON_THEIR_OWN: list(self.on_their_own),
        }
        return {name: lines for name, lines in groups.items() if lines}


class ReportSink(Protocol):
    """Receives a finished report for rendering (PDF, print, text)."""

    def write(self, title: str, subtitle: str, date: str, sections: Mapping[str, list[str]]) -> None: ...


class TextReportSink:
    """Renders a report as plain text, one line per room or rider."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def write(self, title: str, subtitle: str, date: str, sections: Mapping[str, list[str]]) -> None:
        self.lines = [title, subtitle, date]
        for name, entries in sections.items():
            self.lines.append("")
            self.lines.append(name)
            self.lines.extend(f"  {entry}" for entry in entries)

    def text(self) -> str:
        return "\n".join(self.lines) + "\n"


def surname_key(full_name: str) -> str:
    """Last whitespace-delimited token, case-insensitive."""
    parts = full_name.split()
    return parts[-1].casefold() if parts else ""


def _name_sort_key(name: str) -> tuple[str, str]:
    return (surname_key(name), name.casefold())


def _room_sort_key(room: ReportRoom) -> tuple[str, str, str, str]:
    first = room.occupants[0] if room.occupants else ""
    return (surname_key(first), first.casefold(), room.label.casefold(), room.room_id)


def _assignment_order(item: tuple[AssignmentKey, BedAssignment]) -> tuple[object, ...]:
    key, assignment = item
    return (assignment.assigned_at, key.sort_key())


def group_assignments(
    night: int,
    inventory: Iterable[RoomInventoryEntry],
    store: Mapping[AssignmentKey, BedAssignment],
    resolve_name: NameResolver | None = None,
) -> LodgingReport:
    """Group a night's assignments for export.

    Records whose room is not in the night's inventory are left out.
    Co-occupants of a room keep assignment order (assigned_at, then key).

    Args:
        night: Tour night
        inventory: Full inventory or the night's rooms
        store: Persisted assignments for the night
        resolve_name: Display name for a record, defaults to occupant_name
    """
    resolve = resolve_name or (lambda assignment: assignment.occupant_name)
    info = get_night_info(night)
    rooms = {room.id: room for room in rooms_for_night(inventory, night)}

    by_room: dict[str, list[tuple[AssignmentKey, BedAssignment]]] = defaultdict(list)
    for key, assignment in store.items():
        if key.room_id in rooms:
            by_room[key.room_id].append((key, assignment))

    report = LodgingReport(
        night=night,
        title=f"Room Assignments - Day {night}",
        subtitle=f"{info.hotel} - {info.location}",
        date=info.date,
    )

    for room_id, entries in by_room.items():
        room = rooms[room_id]
        names = [resolve(assignment) for _, assignment in sorted(entries, key=_assignment_order)]
        if room.is_camping:
            report.camping.extend(names)
        elif room.is_own_accommodation:
            report.on_their_own.extend(names)
        elif len(room.beds) == 1:
            report.single_rooms.append(ReportRoom(room_id=room.id, label=room_label(room), occupants=names))
        else:
            report.double_rooms.append(ReportRoom(room_id=room.id, label=room_label(room), occupants=names))

    report.single_rooms.sort(key=_room_sort_key)
    report.double_rooms.sort(key=_room_sort_key)
    report.camping.sort(key=_name_sort_key)
    report.on_their_own.sort(key=_name_sort_key)
    return report


def export_report(report: LodgingReport, sink: ReportSink) -> None:
    sink.write(report.title, report.subtitle, report.date, report.sections())
