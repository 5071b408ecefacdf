"""Lodging error classes.

Capacity exhaustion is not an error: engine operations report it by
returning False. Everything here is recoverable by operator retry.
"""

from __future__ import annotations


class LodgingError(Exception):
    """Base exception for lodging assignment errors."""

    pass


class UnknownNightError(LodgingError):
    """Raised when a night has no lodging assignment."""

    def __init__(self, night: int):
        self.night = night
        super().__init__(f"Night {night} has no lodging assignment")


class UnknownRoomError(LodgingError):
    """Raised when a room id is not part of the night's inventory."""

    def __init__(self, room_id: str, night: int):
        self.room_id = room_id
        self.night = night
        super().__init__(f"Room {room_id!r} is not in the inventory for night {night}")


class InvalidAssignmentKeyError(LodgingError, ValueError):
    """Raised when an assignment key cannot be parsed or built."""

    pass


class PersistenceError(LodgingError):
    """Base class for failures talking to the assignment store. Retryable."""

    pass


class AssignmentLoadError(PersistenceError):
    """Raised when a night's assignments cannot be read."""

    pass


class AssignmentSaveError(PersistenceError):
    """Raised when a night's assignments cannot be written.

    The working copy is left untouched so the operator can retry.
    """

    pass


class SaveInProgressError(PersistenceError):
    """Raised when a save is requested while another save is outstanding."""

    pass


class NightNotOpenError(LodgingError):
    """Raised when an edit targets a night the editor does not have open."""

    def __init__(self, night: int, open_night: int | None):
        self.night = night
        self.open_night = open_night
        super().__init__(f"Night {night} is not open (open night: {open_night})")
