from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint


class Player(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "players"
    __table_args__ = (
        UniqueConstraint("origin_season_id", "name", name="uq_players_origin_season_name"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=100)
    position: str = Field(max_length=50)
    jersey_number: Optional[int] = Field(default=None, ge=0, le=99)

    # Roster pointer, independent of season membership. None means free agent.
    current_club_id: Optional[int] = Field(
        default=None, foreign_key="clubs.id", index=True
    )
    origin_season_id: Optional[int] = Field(
        default=None, foreign_key="seasons.id", index=True
    )
    active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
