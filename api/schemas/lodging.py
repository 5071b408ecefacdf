"""
Pydantic schemas for the lodging operator endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from lodging.models import Accommodation
from lodging.occupancy import NightOccupancy, SelectionSummary


class NightViewResponse(BaseModel):
    """A night as the operator's editor sees it."""

    occupancy: NightOccupancy
    load_error: str | None = None


class SelectionToggleResponse(BaseModel):
    rider_id: str
    selected: bool
    selection: list[str] = Field(default_factory=list)


class AssignPoolRequest(BaseModel):
    """Pool assignment; with no rider_id the first selected rider is placed."""

    rider_id: str | None = None


class AssignmentResponse(BaseModel):
    """Result of an assign or remove. ``changed`` is False for a no-op."""

    changed: bool
    occupancy: NightOccupancy


class SaveResponse(BaseModel):
    night: int
    saved_assignments: int
    dirty: bool


class RiderSelection(BaseModel):
    rider_id: str
    full_name: str
    accommodation: Accommodation | None = None


class SelectionSummaryResponse(BaseModel):
    summary: SelectionSummary
    riders: list[RiderSelection] = Field(default_factory=list)
