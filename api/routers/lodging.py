"""
Lodging Router - operator endpoints for nightly room assignment.

Every endpoint acts on the calling operator's NightEditor. Engine and
PocketBase calls are blocking, so they run in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from lodging.auth_middleware import AuthUser, require_admin
from lodging.editor import NightEditor
from lodging.errors import (
    InvalidAssignmentKeyError,
    LodgingError,
    NightNotOpenError,
    PersistenceError,
    SaveInProgressError,
    UnknownNightError,
    UnknownRoomError,
)
from lodging.nights import NIGHT_INFO, NightInfo, validate_night
from lodging.occupancy import lookup_selection, riders_by_selection, summarize_selections
from lodging.report import LodgingReport, TextReportSink, export_report

from ..dependencies import get_editor_registry
from ..schemas import (
    AssignmentResponse,
    AssignPoolRequest,
    NightViewResponse,
    RiderSelection,
    SaveResponse,
    SelectionSummaryResponse,
    SelectionToggleResponse,
)
from ..services.editor_registry import EditorRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lodging", tags=["lodging"])


def _http_error(e: LodgingError) -> HTTPException:
    """Map a lodging error onto the status code the UI expects."""
    if isinstance(e, SaveInProgressError | NightNotOpenError):
        status = 409
    elif isinstance(e, PersistenceError):
        logger.error(f"PocketBase error: {e}", exc_info=True)
        status = 503
    elif isinstance(e, UnknownNightError | UnknownRoomError):
        status = 404
    elif isinstance(e, InvalidAssignmentKeyError):
        status = 400
    else:
        logger.error(f"Unexpected lodging error: {e}", exc_info=True)
        status = 500
    return HTTPException(status_code=status, detail=str(e))


async def _editor(registry: EditorRegistry, user: AuthUser) -> NightEditor:
    try:
        return await asyncio.to_thread(registry.editor_for, user.user_id)
    except LodgingError as e:
        raise _http_error(e) from e


def _view(editor: NightEditor, night: int) -> NightViewResponse:
    validate_night(night)
    return NightViewResponse(occupancy=editor.describe(night), load_error=editor.load_error)


@router.get("/nights")
async def list_nights(user: AuthUser = Depends(require_admin)) -> list[NightInfo]:
    """Nights that need room assignments, in tour order."""
    return [NIGHT_INFO[night] for night in sorted(NIGHT_INFO)]


@router.post("/nights/{night}/open")
async def open_night(
    night: int,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> NightViewResponse:
    """Switch the operator's editor to a night. Unsaved edits on another night are dropped."""
    editor = await _editor(registry, user)
    try:
        await asyncio.to_thread(editor.switch_night, night)
        return await asyncio.to_thread(_view, editor, night)
    except LodgingError as e:
        raise _http_error(e) from e


@router.get("/nights/{night}")
async def get_night(
    night: int,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> NightViewResponse:
    editor = await _editor(registry, user)
    try:
        return await asyncio.to_thread(_view, editor, night)
    except LodgingError as e:
        raise _http_error(e) from e


@router.post("/nights/{night}/selection/{rider_id}")
async def toggle_selection(
    night: int,
    rider_id: str,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> SelectionToggleResponse:
    editor = await _editor(registry, user)
    try:
        await asyncio.to_thread(editor.toggle_selection, rider_id, night)
    except LodgingError as e:
        raise _http_error(e) from e

    context = editor.context
    selection = list(context.selection) if context else []
    rider = context.find_rider(rider_id) if context else None
    selected = rider is not None and rider.id in selection
    return SelectionToggleResponse(rider_id=rider_id, selected=selected, selection=selection)


@router.delete("/nights/{night}/selection")
async def clear_selection(
    night: int,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> SelectionToggleResponse:
    editor = await _editor(registry, user)
    try:
        await asyncio.to_thread(editor.clear_selection, night)
    except LodgingError as e:
        raise _http_error(e) from e
    return SelectionToggleResponse(rider_id="", selected=False, selection=[])


@router.post("/nights/{night}/rooms/{room_id}/assign")
async def assign_to_room(
    night: int,
    room_id: str,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> AssignmentResponse:
    """Place the selected riders in a room."""
    editor = await _editor(registry, user)
    try:
        changed = await asyncio.to_thread(editor.assign_to_room, room_id, night)
        occupancy = await asyncio.to_thread(editor.describe, night)
    except LodgingError as e:
        raise _http_error(e) from e
    return AssignmentResponse(changed=changed, occupancy=occupancy)


@router.post("/nights/{night}/pools/{room_id}/assign")
async def assign_to_pool(
    night: int,
    room_id: str,
    request: AssignPoolRequest,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> AssignmentResponse:
    editor = await _editor(registry, user)
    try:
        changed = await asyncio.to_thread(editor.assign_to_pool, room_id, request.rider_id, night)
        occupancy = await asyncio.to_thread(editor.describe, night)
    except LodgingError as e:
        raise _http_error(e) from e
    return AssignmentResponse(changed=changed, occupancy=occupancy)


@router.delete("/nights/{night}/assignments/{key}")
async def remove_assignment(
    night: int,
    key: str,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> AssignmentResponse:
    editor = await _editor(registry, user)
    try:
        changed = await asyncio.to_thread(editor.remove_assignment, key, night)
        occupancy = await asyncio.to_thread(editor.describe, night)
    except LodgingError as e:
        raise _http_error(e) from e
    return AssignmentResponse(changed=changed, occupancy=occupancy)


@router.post("/nights/{night}/save")
async def save_night(
    night: int,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> SaveResponse:
    editor = await _editor(registry, user)
    try:
        await asyncio.to_thread(editor.save, night)
    except LodgingError as e:
        raise _http_error(e) from e

    context = editor.context
    return SaveResponse(
        night=night,
        saved_assignments=len(context.baseline) if context else 0,
        dirty=context.dirty if context else False,
    )


@router.post("/nights/{night}/reload")
async def reload_night(
    night: int,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> NightViewResponse:
    """Discard local edits and reload the night from PocketBase."""
    editor = await _editor(registry, user)
    try:
        if editor.night != night:
            raise NightNotOpenError(night, editor.night)
        await asyncio.to_thread(editor.reload)
        return await asyncio.to_thread(_view, editor, night)
    except LodgingError as e:
        raise _http_error(e) from e


@router.get("/nights/{night}/report")
async def get_report(
    night: int,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> LodgingReport:
    """Saved assignments grouped for printing."""
    editor = await _editor(registry, user)
    try:
        validate_night(night)
        return await asyncio.to_thread(editor.report, night)
    except LodgingError as e:
        raise _http_error(e) from e


@router.get("/nights/{night}/report.txt", response_class=PlainTextResponse)
async def get_report_text(
    night: int,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> str:
    editor = await _editor(registry, user)
    try:
        validate_night(night)
        report = await asyncio.to_thread(editor.report, night)
    except LodgingError as e:
        raise _http_error(e) from e

    sink = TextReportSink()
    export_report(report, sink)
    return sink.text()


@router.get("/nights/{night}/selections")
async def get_selection_summary(
    night: int,
    user: AuthUser = Depends(require_admin),
    registry: EditorRegistry = Depends(get_editor_registry),
) -> SelectionSummaryResponse:
    """What riders chose for the night: hotel, camping, own or nothing yet."""
    try:
        validate_night(night)
        data = await asyncio.to_thread(registry.tour_data)
    except LodgingError as e:
        raise _http_error(e) from e

    riders = []
    for rider in riders_by_selection(data.roster, data.profiles, night):
        selection = lookup_selection(data.profiles, rider, night)
        riders.append(
            RiderSelection(
                rider_id=rider.id,
                full_name=rider.full_name,
                accommodation=selection.accommodation if selection else None,
            )
        )
    return SelectionSummaryResponse(summary=summarize_selections(data.roster, data.profiles, night), riders=riders)
