from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class Accommodation(str, Enum):
    HOTEL = "hotel"
    CAMPING = "camping"
    OWN = "own"


class RoomKind(str, Enum):
    STANDARD = "standard"
    CAMPING = "camping"
    OWN = "own"


class RoomInventoryEntry(BaseModel):
    """One lodging unit for one night: a fixed-bed room or an unlimited pool."""

    model_config = ConfigDict(frozen=True)

    id: str
    day: int
    suite_name: str = Field(validation_alias=AliasChoices("suite_name", "suiteName"))
    room_number: str = Field(default="R1", validation_alias=AliasChoices("room_number", "roomNumber"))
    beds: tuple[str, ...] = ()
    is_camping: bool = Field(default=False, validation_alias=AliasChoices("is_camping", "isCamping"))
    is_own_accommodation: bool = Field(
        default=False, validation_alias=AliasChoices("is_own_accommodation", "isOwnAccommodation")
    )
    location: str | None = None
    max_occupancy: int | None = Field(default=None, validation_alias=AliasChoices("max_occupancy", "maxOccupancy"))

    @model_validator(mode="after")
    def validate_kind(self) -> RoomInventoryEntry:
        if self.is_camping and self.is_own_accommodation:
            raise ValueError(f"Room {self.id} cannot be both a camping pool and an own-accommodation pool")
        if not self.is_pool and not self.beds:
            raise ValueError(f"Standard room {self.id} must have at least one bed")
        return self

    @property
    def kind(self) -> RoomKind:
        if self.is_camping:
            return RoomKind.CAMPING
        if self.is_own_accommodation:
            return RoomKind.OWN
        return RoomKind.STANDARD

    @property
    def is_pool(self) -> bool:
        return self.is_camping or self.is_own_accommodation

    @property
    def is_standard(self) -> bool:
        return not self.is_pool


class BedAssignment(BaseModel):
    """A single occupant record. Replaced as a whole, never patched."""

    model_config = ConfigDict(frozen=True)

    occupant_id: str = Field(validation_alias=AliasChoices("occupant_id", "oderId"))
    occupant_name: str = Field(validation_alias=AliasChoices("occupant_name", "riderName"))
    assigned_at: datetime = Field(validation_alias=AliasChoices("assigned_at", "assignedAt"))
    assigned_by: str = Field(default="", validation_alias=AliasChoices("assigned_by", "assignedBy"))

    @field_validator("assigned_at", mode="after")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # Older documents carry naive timestamps; they were written in UTC
        return v if v.tzinfo is not None else v.replace(tzinfo=UTC)


class NightSelection(BaseModel):
    """A rider's own choices for one night."""

    accommodation: Accommodation | None = None
    prefers_single_room: bool = Field(
        default=False, validation_alias=AliasChoices("prefers_single_room", "prefersSingleRoom")
    )
    prefers_floor_sleeping: bool = Field(
        default=False, validation_alias=AliasChoices("prefers_floor_sleeping", "prefersFloorSleeping")
    )
    dinner: bool = False
    breakfast: bool = False


class Registration(BaseModel):
    """Roster entry for a registered rider."""

    id: str
    uid: str | None = None
    full_name: str = Field(validation_alias=AliasChoices("full_name", "fullName"))
    nickname: str | None = None
    email: str | None = None

    def has_id(self, rider_id: str) -> bool:
        return rider_id == self.id or (self.uid is not None and rider_id == self.uid)


class RiderProfile(BaseModel):
    """Per-user profile holding roommate preference and nightly selections."""

    id: str
    display_name: str | None = Field(default=None, validation_alias=AliasChoices("display_name", "displayName"))
    email: str | None = None
    preferred_roommate_name: str | None = Field(
        default=None, validation_alias=AliasChoices("preferred_roommate_name", "preferredRoommateName")
    )
    accommodation_selections: dict[str, NightSelection] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("accommodation_selections", "accommodationSelections"),
    )


class RiderView(BaseModel):
    """A roster entry seen through one night: selection plus assignment status."""

    id: str
    uid: str | None = None
    full_name: str
    nickname: str | None = None
    email: str | None = None
    accommodation: Accommodation = Accommodation.HOTEL
    prefers_single_room: bool = False
    preferred_roommate_name: str | None = None
    is_assigned: bool = False

    def has_id(self, rider_id: str) -> bool:
        return rider_id == self.id or (self.uid is not None and rider_id == self.uid)
