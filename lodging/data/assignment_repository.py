"""Assignment repository - one PocketBase record per night.

Each record holds the night index and a JSON field with the complete
``{key: record}`` document. Saving replaces the whole document; individual
keys are never merged.

The pocketbase SDK keeps one realtime listener per collection and client, so
the repository holds that single subscription itself and fans each event out
to the callbacks registered for the event's night.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

# ClientResponseError is not re-exported by the pocketbase package root
from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from pocketbase import PocketBase

from ..assignment_store import AssignmentStore, store_from_document, store_to_document
from ..errors import AssignmentLoadError, AssignmentSaveError
from ..logging_config import TRACE

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[int, AssignmentStore], None]


def night_record_id(night: int) -> str:
    """Record id for a night's document (PocketBase ids are 15 chars of [a-z0-9])."""
    return f"night{night:010d}"


class AssignmentRepository:
    """Load, save and watch nightly assignment documents."""

    def __init__(self, pb_client: PocketBase, collection: str = "room_assignments") -> None:
        self.pb = pb_client
        self.collection = collection
        self._listeners: dict[int, list[SnapshotCallback]] = {}
        self._listeners_lock = threading.Lock()
        self._subscribed = False

    def _find_record(self, night: int) -> Any | None:
        # Oldest first so a stray duplicate never shadows the night's record
        result = self.pb.collection(self.collection).get_list(
            page=1,
            per_page=1,
            query_params={"filter": f"night = {night}", "sort": "created,id"},
        )
        return result.items[0] if result.items else None

    def load(self, night: int) -> AssignmentStore:
        """Current assignments for a night; a missing record is an empty night.

        Raises:
            AssignmentLoadError: PocketBase could not be reached or refused the query
        """
        try:
            record = self._find_record(night)
        except ClientResponseError as e:
            raise AssignmentLoadError(f"Failed to load assignments for night {night}: {e}") from e

        if record is None:
            logger.debug(f"No assignment record for night {night}")
            return {}

        store = store_from_document(getattr(record, "assignments", None))
        logger.debug(f"Loaded {len(store)} assignments for night {night}")
        return store

    def save(self, night: int, store: AssignmentStore) -> None:
        """Replace the night's document with store. An empty store clears the night.

        A night without a record is created under night_record_id(), so two
        first saves racing each other end in one record, last writer winning.

        Raises:
            AssignmentSaveError: the write did not complete
        """
        document = store_to_document(store)
        logger.log(TRACE, f"Saving night {night} document: {document}")
        records = self.pb.collection(self.collection)
        try:
            record = self._find_record(night)
            if record is not None:
                records.update(record.id, {"assignments": document})
            else:
                self._create_night(night, document)
        except ClientResponseError as e:
            raise AssignmentSaveError(f"Failed to save assignments for night {night}: {e}") from e

        logger.info(f"Saved {len(document)} assignments for night {night}")

    def _create_night(self, night: int, document: dict[str, Any]) -> None:
        records = self.pb.collection(self.collection)
        record_id = night_record_id(night)
        try:
            records.create({"id": record_id, "night": night, "assignments": document})
        except ClientResponseError as e:
            # 400 here means the id is taken: another save created the record first
            if e.status != 400:
                raise
            logger.debug(f"Record {record_id} already exists, updating it instead")
            records.update(record_id, {"assignments": document})

    # ========================================
    # Realtime
    # ========================================

    def subscribe(self, night: int, callback: SnapshotCallback) -> Callable[[], None]:
        """Push every change to the night's record into callback.

        The callback runs on the realtime client's thread and receives the
        night and the complete new store (empty when the record is deleted).
        Returns a function that removes this callback only; the collection
        subscription is dropped once no callback is left.
        """
        with self._listeners_lock:
            self._listeners.setdefault(night, []).append(callback)
            if not self._subscribed:
                self.pb.collection(self.collection).subscribe(self._dispatch)
                self._subscribed = True
                logger.debug(f"Subscribed to {self.collection} changes")
        logger.debug(f"Watching night {night} ({self.listener_count(night)} listeners)")

        def unsubscribe() -> None:
            self._remove_listener(night, callback)

        return unsubscribe

    def listener_count(self, night: int | None = None) -> int:
        with self._listeners_lock:
            if night is not None:
                return len(self._listeners.get(night, []))
            return sum(len(callbacks) for callbacks in self._listeners.values())

    def _remove_listener(self, night: int, callback: SnapshotCallback) -> None:
        with self._listeners_lock:
            callbacks = self._listeners.get(night, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._listeners.pop(night, None)
            if self._listeners or not self._subscribed:
                return
            self._subscribed = False
            self.pb.collection(self.collection).unsubscribe()
        logger.debug(f"Unsubscribed from {self.collection} changes")

    def _dispatch(self, event: Any) -> None:
        record = getattr(event, "record", None)
        record_night = getattr(record, "night", None)
        if record_night is None:
            return
        night = int(record_night)
        with self._listeners_lock:
            callbacks = list(self._listeners.get(night, []))
        if not callbacks:
            return

        action = getattr(event, "action", "")
        if action == "delete":
            store: AssignmentStore = {}
        else:
            store = store_from_document(getattr(record, "assignments", None))
        logger.log(TRACE, f"Realtime {action} for night {night}: {len(store)} assignments, {len(callbacks)} editors")
        for callback in callbacks:
            callback(night, dict(store))
