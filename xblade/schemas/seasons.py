from typing import Optional
from datetime import date, datetime
from sqlmodel import SQLModel, Field


class Season(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "seasons"

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="leagues.id", index=True)
    name: str = Field(max_length=50, description="Season label like '2024' or 'Winter 24'")
    start_date: date
    end_date: date
    description: Optional[str] = Field(default=None, max_length=500)
    active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
