"""
Night editor - one operator's working session over one night.

The editor owns a NightContext and keeps it in step with the assignment
repository:

- open_night() subscribes to remote changes, then loads the night
- remote snapshots replace the working copy only while it is CLEAN; while
  DIRTY they are kept aside in ``remote_store`` so local edits survive
- save() writes the full working copy; only success returns to CLEAN
- switching nights drops the selection and any unsaved edits

Engine calls and realtime callbacks may arrive on different threads, so
every access to the context goes through one lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TypeVar

from . import engine
from .assignment_store import AssignmentKey, AssignmentStore
from .data.assignment_repository import AssignmentRepository
from .engine import NightContext, SyncState
from .errors import AssignmentLoadError, AssignmentSaveError, NightNotOpenError, SaveInProgressError
from .inventory import rooms_for_night
from .models import Registration, RiderProfile, RoomInventoryEntry
from .nights import validate_night
from .occupancy import NightOccupancy, describe_night, display_name
from .report import LodgingReport, group_assignments

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NightEditor:
    """Stateful wrapper around the engine for a single operator."""

    def __init__(
        self,
        repository: AssignmentRepository,
        inventory: list[RoomInventoryEntry],
        roster: list[Registration],
        profiles: Mapping[str, RiderProfile],
        operator_id: str = "",
    ) -> None:
        self.repository = repository
        self.inventory = inventory
        self.roster = roster
        self.profiles = profiles
        self.operator_id = operator_id
        self.context: NightContext | None = None
        self.load_error: str | None = None
        self._lock = threading.RLock()
        self._save_in_flight = False
        self._unsubscribe: Callable[[], None] | None = None

    # ========================================
    # Night lifecycle
    # ========================================

    @property
    def night(self) -> int | None:
        return self.context.night if self.context else None

    def open_night(self, night: int) -> NightContext:
        """Load a night and start watching it. Replaces any open night.

        The subscription starts before the load, so a save that lands while
        loading still reaches this editor. A failed load leaves an empty
        working copy and records load_error; the operator can retry with
        reload().
        """
        validate_night(night)
        with self._lock:
            self._close_locked()
            self._unsubscribe = self.repository.subscribe(night, self._on_remote_snapshot)
            context = NightContext(
                night=night,
                rooms=rooms_for_night(self.inventory, night),
                roster=self.roster,
                operator_id=self.operator_id,
            )
            self.context = context
            store = self._load_or_empty(night)
            context.working_store = dict(store)
            context.baseline = dict(store)
        logger.info(f"Opened night {night} with {len(store)} assignments")
        return context

    def switch_night(self, night: int) -> NightContext:
        with self._lock:
            current = self.context
            if current is not None and current.night == night:
                return current
            if current is not None and current.dirty:
                logger.warning(f"Discarding unsaved changes for night {current.night}")
        return self.open_night(night)

    def reload(self) -> NightContext:
        """Throw away local edits and reload the open night from the store."""
        context = self._require_context()
        store = self._load_or_empty(context.night)
        with self._lock:
            context.working_store = dict(store)
            context.baseline = dict(store)
            context.remote_store = None
            context.selection.clear()
            context.state = SyncState.CLEAN
        return context

    def close(self) -> None:
        with self._lock:
            self._close_locked()

    def _close_locked(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.context = None

    def _load_or_empty(self, night: int) -> AssignmentStore:
        try:
            store = self.repository.load(night)
        except AssignmentLoadError as e:
            logger.error(f"Could not load night {night}, starting from an empty store: {e}")
            self.load_error = str(e)
            return {}
        self.load_error = None
        return store

    def _require_context(self, night: int | None = None) -> NightContext:
        context = self.context
        if context is None or (night is not None and context.night != night):
            raise NightNotOpenError(night if night is not None else -1, context.night if context else None)
        return context

    def _on_remote_snapshot(self, night: int, store: AssignmentStore) -> None:
        with self._lock:
            context = self.context
            if context is None or context.night != night:
                return
            if context.state is SyncState.CLEAN:
                context.working_store = dict(store)
                context.baseline = dict(store)
                context.remote_store = None
                context.selection[:] = [
                    rider_id for rider_id in context.selection if not context.is_rider_assigned(rider_id)
                ]
                logger.info(f"Night {night} updated by another operator ({len(store)} assignments)")
            else:
                context.remote_store = dict(store)
                logger.warning(f"Night {night} changed remotely while local edits are unsaved")

    # ========================================
    # Engine operations
    # ========================================

    def _run(self, night: int | None, operation: Callable[[NightContext], T]) -> T:
        with self._lock:
            return operation(self._require_context(night))

    def toggle_selection(self, rider_id: str, night: int | None = None) -> bool:
        return self._run(night, lambda ctx: engine.toggle_selection(ctx, rider_id))

    def clear_selection(self, night: int | None = None) -> None:
        self._run(night, engine.clear_selection)

    def assign_to_room(self, room_id: str, night: int | None = None, now: datetime | None = None) -> bool:
        return self._run(night, lambda ctx: engine.assign_to_room(ctx, room_id, now=now))

    def assign_to_pool(
        self,
        pool_room_id: str,
        rider_id: str | None = None,
        night: int | None = None,
        now: datetime | None = None,
    ) -> bool:
        return self._run(night, lambda ctx: engine.assign_to_pool(ctx, pool_room_id, rider_id, now=now))

    def remove_assignment(self, key: AssignmentKey | str, night: int | None = None) -> bool:
        return self._run(night, lambda ctx: engine.remove_assignment(ctx, key))

    # ========================================
    # Persistence
    # ========================================

    def save(self, night: int | None = None) -> None:
        """Persist the full working copy.

        Raises:
            SaveInProgressError: another save for this editor has not finished
            AssignmentSaveError: the write failed; the working copy is kept
        """
        with self._lock:
            context = self._require_context(night)
            if self._save_in_flight:
                raise SaveInProgressError(f"A save for night {context.night} is already in progress")
            self._save_in_flight = True
            snapshot = dict(context.working_store)

        try:
            self.repository.save(context.night, snapshot)
        except AssignmentSaveError:
            logger.error(f"Save failed for night {context.night}; keeping {len(snapshot)} unsaved assignments")
            raise
        else:
            with self._lock:
                context.baseline = snapshot
                context.remote_store = None
                if context.working_store == snapshot:
                    context.state = SyncState.CLEAN
        finally:
            with self._lock:
                self._save_in_flight = False

    # ========================================
    # Views
    # ========================================

    def describe(self, night: int | None = None) -> NightOccupancy:
        return self._run(night, lambda ctx: describe_night(ctx, self.profiles))

    def report(self, night: int) -> LodgingReport:
        """Report built from the persisted store, not the working copy."""
        store = self.repository.load(night)
        return group_assignments(
            night,
            self.inventory,
            store,
            lambda assignment: display_name(
                assignment.occupant_id, assignment.occupant_name, self.roster, self.profiles
            ),
        )
