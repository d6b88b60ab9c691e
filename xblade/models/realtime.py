"""Pydantic models for realtime season events."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SeasonEventName(str, Enum):
    CLUB_ASSIGNED = "club-assigned"
    CLUB_REMOVED = "club-removed"
    PLAYER_ASSIGNED = "player-assigned"
    PLAYER_REMOVED = "player-removed"
    PLAYER_CLUB_UPDATED = "player-club-updated"
    SEASON_DELETED = "deleted"

    @property
    def wire_name(self) -> str:
        return f"season:{self.value}"


class SeasonEvent(BaseModel):
    """A "something changed, refetch" signal scoped to one season room."""

    model_config = ConfigDict(populate_by_name=True)

    name: SeasonEventName
    season_id: int = Field(alias="seasonId")
    seq: int = 0
    emitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="emittedAt"
    )
    data: dict[str, Any] = Field(default_factory=dict)

    def payload(self) -> dict[str, Any]:
        return {
            "seasonId": self.season_id,
            "seq": self.seq,
            "emittedAt": self.emitted_at.isoformat(),
            **self.data,
        }


class EventCatchUp(BaseModel):
    season_id: int
    since: int
    latest_seq: int
    resync_required: bool
    events: list[dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None
