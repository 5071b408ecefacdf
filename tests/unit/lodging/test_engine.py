"""Tests for the assignment engine: selection, room placement, pools and removal."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from lodging.assignment_store import AssignmentKey, room_assignments
from lodging.engine import (
    SyncState,
    assign_to_pool,
    assign_to_room,
    clear_selection,
    remove_assignment,
    toggle_selection,
)
from lodging.errors import InvalidAssignmentKeyError, UnknownRoomError
from lodging.models import BedAssignment

FIXED_NOW = datetime(2026, 3, 19, 18, 30, tzinfo=UTC)


def occupant_ids(ctx) -> list[str]:
    return sorted(assignment.occupant_id for assignment in ctx.working_store.values())


class TestSelection:
    def test_toggle_adds_and_removes(self, make_context):
        ctx = make_context()
        assert toggle_selection(ctx, "reg-alice") is True
        assert ctx.selection == ["reg-alice"]
        toggle_selection(ctx, "reg-alice")
        assert ctx.selection == []

    def test_selection_keeps_pick_order(self, make_context):
        ctx = make_context()
        for rider_id in ("reg-carol", "reg-alice", "reg-bob"):
            toggle_selection(ctx, rider_id)
        assert ctx.selection == ["reg-carol", "reg-alice", "reg-bob"]

    def test_assigned_rider_cannot_be_selected(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        assign_to_room(ctx, "best-western-1-r1", now=FIXED_NOW)
        assert toggle_selection(ctx, "reg-alice") is False
        assert ctx.selection == []

    def test_selection_does_not_mark_dirty(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        assert ctx.state is SyncState.CLEAN

    def test_uid_toggles_registration_entry(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")

        assert toggle_selection(ctx, "uid-alice") is True
        assert ctx.selection == []

        toggle_selection(ctx, "uid-alice")
        assert ctx.selection == ["reg-alice"]

    def test_unknown_rider_not_selected(self, make_context):
        ctx = make_context()
        assert toggle_selection(ctx, "reg-ghost") is False
        assert ctx.selection == []

    def test_clear_selection(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        clear_selection(ctx)
        assert ctx.selection == []


class TestAssignToRoom:
    def test_single_rider(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")

        assert assign_to_room(ctx, "best-western-1-r1", now=FIXED_NOW) is True

        key = AssignmentKey.for_bed("best-western-1-r1", "Bed 1", "0")
        assignment = ctx.working_store[key]
        assert assignment.occupant_id == "reg-alice"
        assert assignment.occupant_name == "Alice Walker"
        assert assignment.assigned_at == FIXED_NOW
        assert assignment.assigned_by == "op-1"
        assert ctx.selection == []
        assert ctx.state is SyncState.DIRTY

    def test_couple_shares_first_free_bed(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        toggle_selection(ctx, "reg-bob")

        assert assign_to_room(ctx, "best-western-20-r1", now=FIXED_NOW) is True

        assert set(map(str, ctx.working_store)) == {
            "best-western-20-r1__bed-1__0",
            "best-western-20-r1__bed-1__1",
        }
        assert ctx.working_store[AssignmentKey.parse("best-western-20-r1__bed-1__0")].occupant_id == "reg-alice"

    def test_couple_skips_occupied_bed(self, make_context):
        taken = AssignmentKey.for_bed("best-western-20-r1", "Bed 1", "0")
        ctx = make_context(
            store={taken: BedAssignment(occupant_id="reg-erin", occupant_name="Erin Clark", assigned_at=FIXED_NOW)}
        )
        toggle_selection(ctx, "reg-alice")
        toggle_selection(ctx, "reg-bob")

        assign_to_room(ctx, "best-western-20-r1", now=FIXED_NOW)

        bed_2 = [key for key in ctx.working_store if key.bed_id == "bed-2"]
        assert sorted(key.suffix for key in bed_2) == ["0", "1"]

    def test_couple_in_single_bed_room(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        toggle_selection(ctx, "reg-bob")

        assert assign_to_room(ctx, "best-western-1-r1", now=FIXED_NOW) is True
        assert len(room_assignments(ctx.working_store, "best-western-1-r1")) == 2

    def test_uid_alias_does_not_form_a_couple(self, make_context):
        ctx = make_context()
        for rider_id in ("reg-alice", "reg-bob", "uid-alice"):
            toggle_selection(ctx, rider_id)

        assign_to_room(ctx, "casa-de-arena-r1", now=FIXED_NOW)

        assert set(map(str, ctx.working_store)) == {"casa-de-arena-r1__bed-1__0"}
        assert occupant_ids(ctx) == ["reg-bob"]

    def test_three_riders_one_per_bed(self, make_context):
        ctx = make_context()
        for rider_id in ("reg-alice", "reg-bob", "reg-carol"):
            toggle_selection(ctx, rider_id)

        assert assign_to_room(ctx, "casa-de-arena-r1", now=FIXED_NOW) is True

        by_bed = {key.bed_id: a.occupant_id for key, a in ctx.working_store.items()}
        assert by_bed == {"bed-1": "reg-alice", "bed-2": "reg-bob", "bed-3": "reg-carol"}
        assert all(key.suffix == "0" for key in ctx.working_store)

    def test_surplus_riders_are_dropped_from_selection(self, make_context):
        ctx = make_context()
        for rider_id in ("reg-alice", "reg-bob", "reg-carol"):
            toggle_selection(ctx, rider_id)

        assert assign_to_room(ctx, "best-western-1-r1", now=FIXED_NOW) is True

        assert occupant_ids(ctx) == ["reg-alice"]
        assert ctx.selection == []

    def test_full_room_is_a_no_op(self, make_context):
        taken = AssignmentKey.for_bed("best-western-1-r1", "Bed 1", "0")
        ctx = make_context(
            store={taken: BedAssignment(occupant_id="reg-erin", occupant_name="Erin Clark", assigned_at=FIXED_NOW)}
        )
        toggle_selection(ctx, "reg-alice")

        assert assign_to_room(ctx, "best-western-1-r1", now=FIXED_NOW) is False
        assert ctx.selection == ["reg-alice"]
        assert ctx.state is SyncState.CLEAN

    def test_empty_selection_is_a_no_op(self, make_context):
        ctx = make_context()
        assert assign_to_room(ctx, "best-western-1-r1") is False
        assert ctx.working_store == {}

    def test_pool_is_rejected(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        assert assign_to_room(ctx, "own-day1") is False

    def test_unknown_room_raises(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        with pytest.raises(UnknownRoomError):
            assign_to_room(ctx, "casa-andres-r1")

    def test_rider_never_holds_two_records(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        assign_to_room(ctx, "best-western-1-r1", now=FIXED_NOW)
        ctx.selection.append("reg-alice")

        assert assign_to_room(ctx, "best-western-2-r1", now=FIXED_NOW) is False
        assert occupant_ids(ctx) == ["reg-alice"]

    def test_selection_by_uid_resolves_registration(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "uid-alice")
        assign_to_room(ctx, "best-western-1-r1", now=FIXED_NOW)
        assert occupant_ids(ctx) == ["reg-alice"]

    def test_unknown_rider_is_skipped(self, make_context):
        ctx = make_context()
        ctx.selection.append("reg-ghost")
        assert assign_to_room(ctx, "best-western-1-r1") is False


class TestAssignToPool:
    def test_adds_first_selected_rider(self, make_context):
        ctx = make_context(night=2)
        toggle_selection(ctx, "reg-carol")
        toggle_selection(ctx, "reg-dave")

        assert assign_to_pool(ctx, "meiling-camping", now=FIXED_NOW) is True

        (key,) = ctx.working_store
        assert key.room_id == "meiling-camping"
        assert key.bed_id.startswith("tent-")
        assert key.suffix is None
        assert ctx.selection == ["reg-dave"]
        assert ctx.dirty

    def test_explicit_rider(self, make_context):
        ctx = make_context()
        assert assign_to_pool(ctx, "own-day1", rider_id="reg-erin", now=FIXED_NOW) is True
        (key,) = ctx.working_store
        assert key.bed_id.startswith("own-")

    def test_same_instant_gets_distinct_keys(self, make_context):
        ctx = make_context(night=2)
        assign_to_pool(ctx, "meiling-camping", rider_id="reg-carol", now=FIXED_NOW)
        assign_to_pool(ctx, "meiling-camping", rider_id="reg-dave", now=FIXED_NOW)
        assign_to_pool(ctx, "meiling-camping", rider_id="reg-erin", now=FIXED_NOW + timedelta(microseconds=10))
        assert len(ctx.working_store) == 3

    def test_pool_has_no_capacity_limit(self, make_context):
        ctx = make_context(night=2)
        for rider in ctx.roster:
            assert assign_to_pool(ctx, "meiling-camping", rider_id=rider.id, now=FIXED_NOW) is True
        assert len(ctx.working_store) == len(ctx.roster)

    def test_assigned_rider_is_rejected(self, make_context):
        ctx = make_context()
        assign_to_pool(ctx, "own-day1", rider_id="reg-erin", now=FIXED_NOW)
        assert assign_to_pool(ctx, "own-day1", rider_id="reg-erin", now=FIXED_NOW) is False
        assert len(ctx.working_store) == 1

    def test_standard_room_is_rejected(self, make_context):
        ctx = make_context()
        assert assign_to_pool(ctx, "best-western-1-r1", rider_id="reg-erin") is False

    def test_no_rider_and_empty_selection(self, make_context):
        ctx = make_context()
        assert assign_to_pool(ctx, "own-day1") is False

    def test_unknown_pool_raises(self, make_context):
        ctx = make_context()
        with pytest.raises(UnknownRoomError):
            assign_to_pool(ctx, "meiling-camping", rider_id="reg-erin")


class TestRemoveAssignment:
    def test_remove_by_string_key(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        assign_to_room(ctx, "best-western-1-r1", now=FIXED_NOW)
        ctx.state = SyncState.CLEAN

        assert remove_assignment(ctx, "best-western-1-r1__bed-1__0") is True
        assert ctx.working_store == {}
        assert ctx.dirty

    def test_removing_one_of_a_couple_keeps_the_other(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        toggle_selection(ctx, "reg-bob")
        assign_to_room(ctx, "best-western-20-r1", now=FIXED_NOW)

        remove_assignment(ctx, AssignmentKey.parse("best-western-20-r1__bed-1__0"))

        assert occupant_ids(ctx) == ["reg-bob"]

    def test_missing_key_is_a_no_op(self, make_context):
        ctx = make_context()
        assert remove_assignment(ctx, "best-western-1-r1__bed-1__0") is False
        assert ctx.state is SyncState.CLEAN

    def test_malformed_key_raises(self, make_context):
        ctx = make_context()
        with pytest.raises(InvalidAssignmentKeyError):
            remove_assignment(ctx, "not-a-key")

    def test_removed_rider_can_be_reassigned(self, make_context):
        ctx = make_context()
        toggle_selection(ctx, "reg-alice")
        assign_to_room(ctx, "best-western-1-r1", now=FIXED_NOW)
        remove_assignment(ctx, "best-western-1-r1__bed-1__0")

        assert toggle_selection(ctx, "reg-alice") is True
        assert assign_to_room(ctx, "best-western-2-r1", now=FIXED_NOW) is True
