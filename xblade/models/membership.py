"""Pydantic request/response models for season membership operations."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MemberFilter(str, Enum):
    """Which memberships ListMembers returns."""

    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    ALL = "all"


class ClubFields(BaseModel):
    """Fields accepted when creating a club inside a season."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=100)
    web_url: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("web_url", "description", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class PlayerFields(BaseModel):
    """Fields accepted when creating a player inside a season."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=100)
    position: str = Field(min_length=1, max_length=50)
    jersey_number: Optional[int] = Field(default=None, ge=0, le=99)


class CreateClubRequest(ClubFields):
    season_id: int


class CreatePlayerRequest(PlayerFields):
    season_id: int


class AddClubRequest(BaseModel):
    season_id: int
    club_id: int


class AddPlayerRequest(BaseModel):
    season_id: int
    player_id: int


class AssignmentUpdate(BaseModel):
    assigned: bool


class PlayerClubUpdate(BaseModel):
    """Roster drag target. Accepts a club id or a "no club" sentinel."""

    current_club: Optional[Union[int, str]] = None


class ClubRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    web_url: Optional[str] = None
    description: Optional[str] = None
    origin_season_id: Optional[int] = None
    active: bool = True


class PlayerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    position: str
    jersey_number: Optional[int] = None
    current_club_id: Optional[int] = None
    origin_season_id: Optional[int] = None
    active: bool = True


class MembershipRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    season_id: int
    assigned: bool


class SeasonClubMember(ClubRead):
    """Club denormalized with its membership row for one season."""

    assigned: bool
    season_club_id: int


class SeasonPlayerMember(PlayerRead):
    """Player denormalized with its membership row for one season."""

    assigned: bool
    season_player_id: int


class AvailableClub(ClubRead):
    """Entry in a season's available-club pool.

    Membership fields are set only for clubs parked with ``assigned=False``.
    """

    assigned: Optional[bool] = None
    season_club_id: Optional[int] = None


class AvailablePlayer(PlayerRead):
    assigned: Optional[bool] = None
    season_player_id: Optional[int] = None


class AddMemberResponse(BaseModel):
    success: bool = True
    created: bool
    membership: MembershipRead
    entity_id: int


class RemoveMemberResponse(BaseModel):
    success: bool = True
    already_absent: bool
    message: str


class CreateClubResponse(BaseModel):
    success: bool = True
    created: bool
    club: ClubRead
    membership: MembershipRead


class CreatePlayerResponse(BaseModel):
    success: bool = True
    created: bool
    player: PlayerRead
    membership: MembershipRead
