"""
Lodging - nightly room assignment for a multi-day motorcycle tour.

This package contains:
- models / nights / inventory: rooms, pools and the nights that need them
- assignment_store: assignment keys and the persisted document format
- engine: selection and placement of riders into rooms and pools
- occupancy: per-night occupancy, stats and roommate-preference checks
- report: printable room lists grouped by room type
- editor: an operator's working session with save and remote sync
- data: PocketBase repositories
"""

from lodging.assignment_store import AssignmentKey, AssignmentStore
from lodging.editor import NightEditor
from lodging.engine import NightContext, SyncState, assign_to_pool, assign_to_room, remove_assignment, toggle_selection
from lodging.errors import NightNotOpenError
from lodging.models import Accommodation, BedAssignment, Registration, RiderProfile, RoomInventoryEntry, RoomKind
from lodging.occupancy import describe_night, summarize_selections
from lodging.report import LodgingReport, group_assignments

__all__ = [
    "Accommodation",
    "AssignmentKey",
    "AssignmentStore",
    "BedAssignment",
    "LodgingReport",
    "NightContext",
    "NightEditor",
    "NightNotOpenError",
    "Registration",
    "RiderProfile",
    "RoomInventoryEntry",
    "RoomKind",
    "SyncState",
    "assign_to_pool",
    "assign_to_room",
    "describe_night",
    "group_assignments",
    "remove_assignment",
    "summarize_selections",
    "toggle_selection",
]
