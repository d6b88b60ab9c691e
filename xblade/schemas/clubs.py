from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint


class Club(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "clubs"
    __table_args__ = (
        UniqueConstraint("origin_season_id", "name", name="uq_clubs_origin_season_name"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=100)
    web_url: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=500)

    # Season the club was created in; scopes the "available" pool
    origin_season_id: Optional[int] = Field(
        default=None, foreign_key="seasons.id", index=True
    )
    active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
