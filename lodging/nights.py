"""Tour nights that need a lodging decision."""

from __future__ import annotations

from pydantic import BaseModel

from .errors import UnknownNightError


class NightInfo(BaseModel):
    """Display information for one assignment night."""

    night: int
    location: str
    hotel: str
    date: str


ROOM_ASSIGNMENT_NIGHTS: tuple[int, ...] = (1, 2, 6, 7, 8)

NIGHT_INFO: dict[int, NightInfo] = {
    1: NightInfo(night=1, location="Temecula", hotel="Best Western", date="Mar 19"),
    2: NightInfo(night=2, location="Meiling", hotel="Rancho Meling", date="Mar 20"),
    6: NightInfo(night=6, location="BOLA", hotel="Camp Archelon", date="Mar 24"),
    7: NightInfo(night=7, location="Tecate", hotel="Santuario Diegueño", date="Mar 25"),
    8: NightInfo(night=8, location="TwentyNine Palms", hotel="Oasis", date="Mar 26"),
}


def night_key(night: int) -> str:
    """Key used for a night inside a rider's accommodation selections."""
    return f"night-{night}"


def validate_night(night: int) -> int:
    if night not in ROOM_ASSIGNMENT_NIGHTS:
        raise UnknownNightError(night)
    return night


def get_night_info(night: int) -> NightInfo:
    return NIGHT_INFO[validate_night(night)]
