"""
Editor Registry - one NightEditor per signed-in operator.

Roster, profiles and inventory are read from PocketBase once and shared by
every editor until refresh() is called. Each operator gets an independent
working copy, so two operators never see each other's unsaved edits.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from lodging.data import AssignmentRepository, RosterRepository
from lodging.editor import NightEditor
from lodging.models import Registration, RiderProfile, RoomInventoryEntry
from pocketbase import PocketBase

logger = logging.getLogger(__name__)


@dataclass
class TourData:
    """Collaborator data shared by all editors."""

    roster: list[Registration] = field(default_factory=list)
    profiles: dict[str, RiderProfile] = field(default_factory=dict)
    inventory: list[RoomInventoryEntry] = field(default_factory=list)


class EditorRegistry:
    def __init__(
        self,
        pb_client: PocketBase,
        assignments_collection: str = "room_assignments",
        inventory_collection: str = "room_inventory",
        registrations_collection: str = "registrations",
        profiles_collection: str = "users",
        event_id: str = "",
    ) -> None:
        self.assignments = AssignmentRepository(pb_client, assignments_collection)
        self.roster_repository = RosterRepository(
            pb_client,
            registrations_collection=registrations_collection,
            profiles_collection=profiles_collection,
            inventory_collection=inventory_collection,
        )
        self.event_id = event_id
        self._data: TourData | None = None
        self._editors: dict[str, NightEditor] = {}
        self._lock = threading.Lock()

    def tour_data(self) -> TourData:
        """Shared roster, profiles and inventory, loaded on first use.

        Raises:
            PersistenceError: PocketBase could not be read
        """
        with self._lock:
            if self._data is None:
                self._data = TourData(
                    roster=self.roster_repository.get_registrations(self.event_id),
                    profiles=self.roster_repository.get_profiles(),
                    inventory=self.roster_repository.get_inventory(),
                )
                logger.info(
                    f"Loaded tour data: {len(self._data.roster)} riders, "
                    f"{len(self._data.inventory)} inventory entries"
                )
            return self._data

    def editor_for(self, operator_id: str) -> NightEditor:
        data = self.tour_data()
        with self._lock:
            editor = self._editors.get(operator_id)
            if editor is None:
                editor = NightEditor(
                    self.assignments,
                    inventory=data.inventory,
                    roster=data.roster,
                    profiles=data.profiles,
                    operator_id=operator_id,
                )
                self._editors[operator_id] = editor
            return editor

    def refresh(self) -> None:
        """Drop cached tour data and close every editor."""
        with self._lock:
            editors = list(self._editors.values())
            self._editors.clear()
            self._data = None
        for editor in editors:
            editor.close()
        logger.info(f"Closed {len(editors)} editors and cleared cached tour data")
