"""
Pydantic schemas for the lodging API.
"""

from __future__ import annotations

from .lodging import (
    AssignmentResponse,
    AssignPoolRequest,
    NightViewResponse,
    RiderSelection,
    SaveResponse,
    SelectionSummaryResponse,
    SelectionToggleResponse,
)

__all__ = [
    "AssignmentResponse",
    "AssignPoolRequest",
    "NightViewResponse",
    "RiderSelection",
    "SaveResponse",
    "SelectionSummaryResponse",
    "SelectionToggleResponse",
]
