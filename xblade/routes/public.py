from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from xblade.models.membership import ClubRead, PlayerRead
from xblade.models.realtime import EventCatchUp
from xblade.models.roster import Projection, RosterView
from xblade.routes.deps import get_notifier
from xblade.services.query_service import build_roster_view, list_public_clubs, list_public_players
from xblade.services.realtime_service import SeasonNotifier
from xblade.utils.db_async import get_session

router = APIRouter(prefix="/api/v1/public/seasons", tags=["public"])


@router.get("/{season_id}/clubs", response_model=List[ClubRead])
async def get_public_clubs(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> List[ClubRead]:
    """Assigned clubs of a season."""
    clubs = await list_public_clubs(db, season_id)
    return [ClubRead.model_validate(club) for club in clubs]


@router.get("/{season_id}/players", response_model=List[PlayerRead])
async def get_public_players(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> List[PlayerRead]:
    """Assigned players who are free agents or play for an assigned club."""
    members = await list_public_players(db, season_id)
    return [PlayerRead.model_validate(m.entity) for m in members]


@router.get("/{season_id}/roster", response_model=RosterView)
async def get_public_roster(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> RosterView:
    return await build_roster_view(db, season_id, Projection.PUBLIC)


@router.get("/{season_id}/events", response_model=EventCatchUp)
async def get_season_events(
    season_id: int,
    since: int = Query(0, ge=0, description="Last sequence number the client has seen"),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> EventCatchUp:
    """Events published after ``since``; ``resync_required`` means refetch everything."""
    return notifier.events_since(season_id, since)
