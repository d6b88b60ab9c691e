from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint


class SeasonPlayer(SQLModel, table=True):  # type: ignore[call-arg]
    """Membership of a player in a season."""

    __tablename__ = "season_players"
    __table_args__ = (
        UniqueConstraint("season_id", "player_id", name="uq_season_players_season_player"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(foreign_key="seasons.id", index=True)
    player_id: int = Field(foreign_key="players.id", index=True)
    assigned: bool = Field(default=True, description="Shown in public/roster views")

    created_at: datetime = Field(default_factory=datetime.utcnow)
