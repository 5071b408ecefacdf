"""PocketBase-backed repositories for lodging data."""

from __future__ import annotations

from .assignment_repository import AssignmentRepository
from .roster_repository import RosterRepository

__all__ = [
    "AssignmentRepository",
    "RosterRepository",
]
