from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint


class SeasonClub(SQLModel, table=True):  # type: ignore[call-arg]
    """Membership of a club in a season."""

    __tablename__ = "season_clubs"
    __table_args__ = (
        UniqueConstraint("season_id", "club_id", name="uq_season_clubs_season_club"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(foreign_key="seasons.id", index=True)
    club_id: int = Field(foreign_key="clubs.id", index=True)
    assigned: bool = Field(default=True, description="Shown in public/roster views")

    created_at: datetime = Field(default_factory=datetime.utcnow)
