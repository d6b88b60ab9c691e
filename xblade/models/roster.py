"""Pydantic models for roster and cascade responses."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from xblade.models.membership import PlayerRead


class Projection(str, Enum):
    PUBLIC = "public"
    ADMIN = "admin"


class RosterPlayer(PlayerRead):
    assigned: bool = True


class RosterGroup(BaseModel):
    club_id: Optional[int] = None
    club_name: Optional[str] = None
    # False when the club has no membership row for this season (admin only)
    member: bool = True
    assigned: bool = True
    players: list[RosterPlayer] = Field(default_factory=list)


class RosterView(BaseModel):
    season_id: int
    projection: Projection
    clubs: list[RosterGroup] = Field(default_factory=list)
    free_agents: list[RosterPlayer] = Field(default_factory=list)


class CascadeReportRead(BaseModel):
    success: bool = True
    message: str
    seasons_deleted: list[int] = Field(default_factory=list)
    clubs_deleted: list[int] = Field(default_factory=list)
    clubs_detached: list[int] = Field(default_factory=list)
    players_deleted: list[int] = Field(default_factory=list)
    players_detached: list[int] = Field(default_factory=list)
    season_clubs_removed: int = 0
    season_players_removed: int = 0
    failures: list[str] = Field(default_factory=list)
