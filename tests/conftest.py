"""
Root test configuration and fixtures for the lodging project.

- unit/: fast, isolated tests mirroring the source tree

PocketBase is always mocked; nothing here opens a network connection.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

# Add project root to path so tests can import lodging, api and scripts
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lodging.engine import NightContext  # noqa: E402
from lodging.models import NightSelection, Registration, RiderProfile, RoomInventoryEntry  # noqa: E402


def create_mock_pocketbase(collections: dict[str, Mock] | None = None) -> Mock:
    """Mock PocketBase client.

    Args:
        collections: Per-collection mocks; unknown names get a shared default
    """
    mock_pb = Mock()

    default_collection = Mock()
    default_collection.auth_with_password = Mock(return_value=True)
    default_collection.get_full_list = Mock(return_value=[])
    default_collection.get_list = Mock(return_value=SimpleNamespace(items=[], total_items=0))
    default_collection.create = Mock(return_value=SimpleNamespace(id="mock-id"))
    default_collection.update = Mock()
    default_collection.subscribe = Mock(return_value=Mock())

    named = collections or {}
    mock_pb.collection = Mock(side_effect=lambda name: named.get(name, default_collection))

    mock_pb.auth_store = Mock()
    mock_pb.auth_store.base_token = "mock-token"
    return mock_pb


def make_collection(records: list[object] | None = None) -> Mock:
    """Collection mock whose get_list/get_full_list return the given records."""
    collection = Mock()
    items = list(records or [])
    collection.get_list = Mock(return_value=SimpleNamespace(items=items[:1], total_items=len(items)))
    collection.get_full_list = Mock(return_value=items)
    collection.create = Mock(return_value=SimpleNamespace(id="new-record"))
    collection.update = Mock()
    collection.subscribe = Mock(return_value=Mock())
    collection.unsubscribe = Mock()
    return collection


@pytest.fixture
def mock_pocketbase():
    return create_mock_pocketbase()


@pytest.fixture(autouse=True)
def mock_all_external_services():
    """Keep tests from reaching a real PocketBase."""
    if os.environ.get("SKIP_MOCKING") == "true":
        yield {}
        return

    mock_pb = create_mock_pocketbase()
    with patch("pocketbase.PocketBase") as mock_pb_class:
        mock_pb_class.return_value = mock_pb
        yield {"pocketbase": mock_pb}


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def night1_rooms() -> list[RoomInventoryEntry]:
    """Night 1: two single-bed rooms, one double, one triple and the own pool."""
    return [
        RoomInventoryEntry(id="best-western-1-r1", day=1, suite_name="Best Western 1", beds=("Bed 1",)),
        RoomInventoryEntry(id="best-western-2-r1", day=1, suite_name="Best Western 2", beds=("Bed 1",)),
        RoomInventoryEntry(id="best-western-20-r1", day=1, suite_name="Best Western 20", beds=("Bed 1", "Bed 2")),
        RoomInventoryEntry(
            id="casa-de-arena-r1", day=1, suite_name="Casa de Arena", beds=("Bed 1", "Bed 2", "Bed 3")
        ),
        RoomInventoryEntry(
            id="own-day1",
            day=1,
            suite_name="On Their Own",
            room_number="NA",
            is_own_accommodation=True,
            max_occupancy=50,
        ),
    ]


@pytest.fixture
def night2_rooms() -> list[RoomInventoryEntry]:
    return [
        RoomInventoryEntry(id="casa-andres-r1", day=2, suite_name="Casa Andres", beds=("Bed 1", "Bed 2")),
        RoomInventoryEntry(id="casa-andres-r2", day=2, suite_name="Casa Andres", room_number="R2", beds=("Bed 1",)),
        RoomInventoryEntry(
            id="meiling-camping",
            day=2,
            suite_name="Camping",
            room_number="NA",
            beds=("Tent",),
            is_camping=True,
            max_occupancy=20,
        ),
    ]


@pytest.fixture
def inventory(night1_rooms, night2_rooms) -> list[RoomInventoryEntry]:
    return night1_rooms + night2_rooms


@pytest.fixture
def roster() -> list[Registration]:
    return [
        Registration(id="reg-alice", uid="uid-alice", full_name="Alice Walker", email="alice@example.com"),
        Registration(id="reg-bob", uid="uid-bob", full_name="Bob Adams", email="bob@example.com"),
        Registration(id="reg-carol", uid="uid-carol", full_name="Carol Young"),
        Registration(id="reg-dave", full_name="Dave Brown"),
        Registration(id="reg-erin", full_name="Erin Clark"),
    ]


@pytest.fixture
def profiles() -> dict[str, RiderProfile]:
    """Alice and Bob want to room together; Carol camps on night 2."""
    return {
        "uid-alice": RiderProfile(
            id="uid-alice",
            display_name="Ali Walker",
            preferred_roommate_name="Bob Adams",
            accommodation_selections={"night-1": NightSelection(accommodation="hotel", dinner=True)},
        ),
        "uid-bob": RiderProfile(
            id="uid-bob",
            accommodation_selections={
                "night-1": NightSelection(accommodation="hotel", prefers_single_room=True, breakfast=True)
            },
        ),
        "uid-carol": RiderProfile(
            id="uid-carol",
            accommodation_selections={
                "night-1": NightSelection(accommodation="own"),
                "night-2": NightSelection(accommodation="camping"),
            },
        ),
    }


@pytest.fixture
def make_context(roster, inventory):
    """Factory for a fresh NightContext over the sample inventory."""
    from lodging.inventory import rooms_for_night

    def _make(night: int = 1, store: dict | None = None) -> NightContext:
        working = dict(store or {})
        return NightContext(
            night=night,
            rooms=rooms_for_night(inventory, night),
            roster=roster,
            working_store=working,
            baseline=dict(working),
            operator_id="op-1",
        )

    return _make
