"""Seed helpers and fakes shared by the SQLite and Postgres test suites."""

from datetime import date
from typing import Any, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from xblade.schemas.clubs import Club
from xblade.schemas.leagues import League
from xblade.schemas.players import Player
from xblade.schemas.season_clubs import SeasonClub
from xblade.schemas.season_players import SeasonPlayer
from xblade.schemas.seasons import Season

ModelT = TypeVar("ModelT", bound=SQLModel)


class RecordingServer:
    """Stand-in for socketio.AsyncServer that records room traffic."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.emits: list[tuple[str, dict[str, Any], Optional[str]]] = []
        self.rooms: dict[str, set[str]] = {}
        self.handlers: dict[str, Any] = {}

    async def emit(self, event: str, data: dict[str, Any], room: Optional[str] = None, **_: Any) -> None:
        if self.fail:
            raise ConnectionError("socket transport down")
        self.emits.append((event, data, room))

    async def enter_room(self, sid: str, room: str, **_: Any) -> None:
        self.rooms.setdefault(room, set()).add(sid)

    async def leave_room(self, sid: str, room: str, **_: Any) -> None:
        self.rooms.get(room, set()).discard(sid)

    def on(self, event: str):
        def register(handler):
            self.handlers[event] = handler
            return handler
        return register

    def events(self, room: Optional[str] = None) -> list[str]:
        return [name for name, _, r in self.emits if room is None or r == room]


async def _save(db: AsyncSession, row: ModelT) -> ModelT:
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def make_league(db: AsyncSession, name: str = "Metro Hockey") -> League:
    return await _save(db, League(name=name))


async def make_season(
    db: AsyncSession, league: League, name: str = "2024", **fields: Any
) -> Season:
    fields.setdefault("start_date", date(2024, 1, 1))
    fields.setdefault("end_date", date(2024, 12, 31))
    return await _save(db, Season(league_id=league.id, name=name, **fields))


async def make_club(
    db: AsyncSession, name: str, origin: Optional[Season] = None, **fields: Any
) -> Club:
    return await _save(
        db, Club(name=name, origin_season_id=origin.id if origin else None, **fields)
    )


async def make_player(
    db: AsyncSession,
    name: str,
    origin: Optional[Season] = None,
    club: Optional[Club] = None,
    position: str = "Forward",
    **fields: Any,
) -> Player:
    return await _save(
        db,
        Player(
            name=name,
            position=position,
            origin_season_id=origin.id if origin else None,
            current_club_id=club.id if club else None,
            **fields,
        ),
    )


async def join_club(
    db: AsyncSession, season: Season, club: Club, assigned: bool = True
) -> SeasonClub:
    return await _save(db, SeasonClub(season_id=season.id, club_id=club.id, assigned=assigned))


async def join_player(
    db: AsyncSession, season: Season, player: Player, assigned: bool = True
) -> SeasonPlayer:
    return await _save(
        db, SeasonPlayer(season_id=season.id, player_id=player.id, assigned=assigned)
    )


async def fetch(db: AsyncSession, model: type[ModelT], row_id: Optional[int]) -> Optional[ModelT]:
    """Read a row straight from the database, bypassing the identity map."""
    result = await db.execute(
        select(model)
        .where(model.id == row_id)  # type: ignore[attr-defined]
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def count(db: AsyncSession, model: type[ModelT], *criteria: Any) -> int:
    result = await db.execute(select(model).where(*criteria))
    return len(result.scalars().all())
