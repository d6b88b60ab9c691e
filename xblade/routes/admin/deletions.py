"""Admin cascade-delete routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from xblade.models.roster import CascadeReportRead
from xblade.routes.deps import get_notifier
from xblade.services import cascade_service
from xblade.services.cascade_service import CascadeReport
from xblade.services.realtime_service import SeasonNotifier
from xblade.utils.db_async import get_session

router = APIRouter(tags=["admin-deletions"])


def _report(report: CascadeReport, message: str) -> CascadeReportRead:
    if report.failures:
        message = f"{message} ({len(report.failures)} cleanup step(s) failed)"
    return CascadeReportRead(
        message=message,
        seasons_deleted=report.seasons_deleted,
        clubs_deleted=report.clubs_deleted,
        clubs_detached=report.clubs_detached,
        players_deleted=report.players_deleted,
        players_detached=report.players_detached,
        season_clubs_removed=report.season_clubs_removed,
        season_players_removed=report.season_players_removed,
        failures=report.failures,
    )


@router.delete("/leagues/{league_id}", response_model=CascadeReportRead)
async def delete_league(
    league_id: int,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> CascadeReportRead:
    """Delete a league with its seasons, memberships and season-only clubs/players."""
    report = await cascade_service.delete_league(db, league_id, notifier=notifier)
    return _report(report, "League and associated data deleted")


@router.delete("/seasons/{season_id}", response_model=CascadeReportRead)
async def delete_season(
    season_id: int,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> CascadeReportRead:
    report = await cascade_service.delete_season(db, season_id, notifier=notifier)
    return _report(report, "Season and associated data deleted")


@router.delete("/clubs/{club_id}", response_model=CascadeReportRead)
async def delete_club(
    club_id: int,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> CascadeReportRead:
    """Delete a club; its players become free agents."""
    report = await cascade_service.delete_club(db, club_id, notifier=notifier)
    return _report(report, "Club deleted")


@router.delete("/players/{player_id}", response_model=CascadeReportRead)
async def delete_player(
    player_id: int,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> CascadeReportRead:
    report = await cascade_service.delete_player(db, player_id, notifier=notifier)
    return _report(report, "Player deleted")
