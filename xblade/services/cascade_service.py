"""Cascade deletion for leagues, seasons, clubs and players.

Season-scoped deletes (a season, or every season of a league) run in two
phases inside one unit of work:

1. Snapshot. Before anything is mutated, read every membership of every
   dependent club/player (those joined to, or originating in, the doomed
   seasons) and decide each one's fate with ``decide_fates``. Membership is
   never re-checked after deletions start.
2. Apply. Each dependent is hard-deleted or detached inside its own
   savepoint; a failure there is logged and recorded but does not stop the
   loop. Then the root rows go: every join row scoped to the doomed seasons,
   the seasons and the league. A root failure aborts the whole unit of work.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from xblade.models.realtime import SeasonEventName
from xblade.schemas.clubs import Club
from xblade.schemas.leagues import League
from xblade.schemas.players import Player
from xblade.schemas.season_clubs import SeasonClub
from xblade.schemas.season_players import SeasonPlayer
from xblade.schemas.seasons import Season
from xblade.services.entity_store import delete_where, update_where
from xblade.services.errors import NotFoundError
from xblade.services.realtime_service import SeasonNotifier
from xblade.utils.db_async import unit_of_work

logger = logging.getLogger(__name__)


class Fate(str, Enum):
    """What happens to a dependent club/player when its seasons go away."""

    DELETE = "delete"  # no membership outside the doomed seasons
    DETACH = "detach"  # member elsewhere; origin into the doomed seasons is cleared


@dataclass
class CascadePlan:
    """Pre-mutation snapshot of everything a season-scoped delete touches."""

    season_ids: frozenset[int]
    league_id: int | None
    clubs: dict[int, Fate] = field(default_factory=dict)
    players: dict[int, Fate] = field(default_factory=dict)

    def ids(self, kind: str, fate: Fate) -> list[int]:
        fates = self.clubs if kind == "club" else self.players
        return sorted(eid for eid, f in fates.items() if f is fate)


@dataclass
class CascadeReport:
    """What a delete request actually did."""

    seasons_deleted: list[int] = field(default_factory=list)
    clubs_deleted: list[int] = field(default_factory=list)
    clubs_detached: list[int] = field(default_factory=list)
    players_deleted: list[int] = field(default_factory=list)
    players_detached: list[int] = field(default_factory=list)
    players_released: int = 0  # players whose current club was nulled
    season_clubs_removed: int = 0
    season_players_removed: int = 0
    failures: list[str] = field(default_factory=list)


def decide_fates(
    deleted_season_ids: Iterable[int],
    memberships: Iterable[tuple[int, int]],
    origins: Mapping[int, int | None],
) -> dict[int, Fate]:
    """Decide delete-vs-detach for each dependent from a membership snapshot.

    Args:
        deleted_season_ids: Seasons being deleted.
        memberships: Every ``(season_id, entity_id)`` join row of every
            dependent, including rows inside the deleted set.
        origins: ``entity_id -> origin_season_id`` for every dependent.

    Returns:
        Fate per dependent entity id.
    """
    doomed = set(deleted_season_ids)
    survives_elsewhere = {
        entity_id for season_id, entity_id in memberships if season_id not in doomed
    }

    return {
        entity_id: Fate.DETACH if entity_id in survives_elsewhere else Fate.DELETE
        for entity_id in origins
    }


async def _snapshot_fates(
    db: AsyncSession, entity: Any, link: Any, link_column: str, season_ids: frozenset[int]
) -> dict[int, Fate]:
    link_col = getattr(link, link_column)
    touched = select(link_col).where(link.season_id.in_(season_ids))
    origin_rows = await db.execute(
        select(entity.id, entity.origin_season_id).where(
            entity.id.in_(touched) | entity.origin_season_id.in_(season_ids)
        )
    )
    origins = {row[0]: row[1] for row in origin_rows.all()}
    if not origins:
        return {}
    membership_rows = await db.execute(
        select(link.season_id, link_col).where(link_col.in_(list(origins)))
    )
    memberships = [(row[0], row[1]) for row in membership_rows.all()]
    return decide_fates(season_ids, memberships, origins)


async def build_cascade_plan(
    db: AsyncSession, season_ids: Iterable[int], league_id: int | None = None
) -> CascadePlan:
    """Snapshot phase: read memberships and decide every dependent's fate."""
    doomed = frozenset(season_ids)
    plan = CascadePlan(season_ids=doomed, league_id=league_id)
    if doomed:
        plan.clubs = await _snapshot_fates(db, Club, SeasonClub, "club_id", doomed)
        plan.players = await _snapshot_fates(db, Player, SeasonPlayer, "player_id", doomed)
    return plan


# Per-dependent steps ----------------------------------------------------------


async def _release_players_from_club(db: AsyncSession, club_id: int) -> int:
    return await update_where(
        db, Player, {"current_club_id": None}, Player.current_club_id == club_id  # type: ignore[arg-type]
    )


async def _hard_delete_club(db: AsyncSession, club_id: int) -> tuple[int, int]:
    """Return (players released, join rows removed)."""
    released = await _release_players_from_club(db, club_id)
    links = await delete_where(db, SeasonClub, SeasonClub.club_id == club_id)  # type: ignore[arg-type]
    await delete_where(db, Club, Club.id == club_id)  # type: ignore[arg-type]
    return released, links


async def _hard_delete_player(db: AsyncSession, player_id: int) -> int:
    links = await delete_where(db, SeasonPlayer, SeasonPlayer.player_id == player_id)  # type: ignore[arg-type]
    await delete_where(db, Player, Player.id == player_id)  # type: ignore[arg-type]
    return links


async def _detach(db: AsyncSession, entity: Any, entity_id: int, season_ids: frozenset[int]) -> None:
    await update_where(
        db,
        entity,
        {"origin_season_id": None},
        entity.id == entity_id,
        entity.origin_season_id.in_(season_ids),
    )


async def _best_effort(
    db: AsyncSession,
    report: CascadeReport,
    description: str,
    step: Callable[[], Awaitable[Any]],
) -> tuple[bool, Any]:
    """Run one dependent cleanup step in a savepoint; log and record failures."""
    try:
        async with db.begin_nested():
            result = await step()
        return True, result
    except Exception as exc:
        logger.exception("Cascade cleanup failed: %s", description)
        report.failures.append(f"{description}: {exc}")
        return False, None


async def _apply_dependents(db: AsyncSession, plan: CascadePlan, report: CascadeReport) -> None:
    for club_id in plan.ids("club", Fate.DELETE):
        ok, counts = await _best_effort(
            db, report, f"delete club {club_id}", lambda cid=club_id: _hard_delete_club(db, cid)
        )
        if ok:
            report.clubs_deleted.append(club_id)
            report.players_released += counts[0]
            report.season_clubs_removed += counts[1]
    for club_id in plan.ids("club", Fate.DETACH):
        ok, _ = await _best_effort(
            db,
            report,
            f"detach club {club_id}",
            lambda cid=club_id: _detach(db, Club, cid, plan.season_ids),
        )
        if ok:
            report.clubs_detached.append(club_id)
    for player_id in plan.ids("player", Fate.DELETE):
        ok, links = await _best_effort(
            db, report, f"delete player {player_id}", lambda pid=player_id: _hard_delete_player(db, pid)
        )
        if ok:
            report.players_deleted.append(player_id)
            report.season_players_removed += links
    for player_id in plan.ids("player", Fate.DETACH):
        ok, _ = await _best_effort(
            db,
            report,
            f"detach player {player_id}",
            lambda pid=player_id: _detach(db, Player, pid, plan.season_ids),
        )
        if ok:
            report.players_detached.append(player_id)


async def _delete_season_rows(db: AsyncSession, plan: CascadePlan, report: CascadeReport) -> None:
    """Root phase for season-scoped deletes. Errors propagate."""
    doomed = plan.season_ids
    report.season_clubs_removed += await delete_where(
        db, SeasonClub, SeasonClub.season_id.in_(doomed)  # type: ignore[attr-defined]
    )
    report.season_players_removed += await delete_where(
        db, SeasonPlayer, SeasonPlayer.season_id.in_(doomed)  # type: ignore[attr-defined]
    )

    # Origin pointers left behind by a failed detach would block the season delete
    for entity in (Club, Player):
        leftover = await update_where(
            db, entity, {"origin_season_id": None}, entity.origin_season_id.in_(doomed)  # type: ignore[attr-defined]
        )
        if leftover:
            logger.warning(
                "Released %d %s origin references to deleted seasons %s",
                leftover, entity.__tablename__, sorted(doomed),
            )

    await delete_where(db, Season, Season.id.in_(doomed))  # type: ignore[union-attr]
    report.seasons_deleted = sorted(doomed)
    if plan.league_id is not None:
        await delete_where(db, League, League.id == plan.league_id)  # type: ignore[arg-type]


async def _notify_seasons_deleted(
    notifier: SeasonNotifier | None, report: CascadeReport, league_id: int | None
) -> None:
    if notifier is None:
        return
    await notifier.publish_many(
        SeasonEventName.SEASON_DELETED,
        report.seasons_deleted,
        leagueId=league_id,
        clubIds=report.clubs_deleted,
        playerIds=report.players_deleted,
    )


# Entry points -----------------------------------------------------------------


async def delete_league(
    db: AsyncSession, league_id: int, *, notifier: SeasonNotifier | None = None
) -> CascadeReport:
    """Delete a league, all its seasons and their memberships.

    Raises:
        NotFoundError: The league does not exist.
    """
    report = CascadeReport()
    async with unit_of_work(db):
        if await db.get(League, league_id) is None:
            raise NotFoundError("League not found")
        result = await db.execute(
            select(Season.id).where(Season.league_id == league_id)  # type: ignore[call-overload]
        )
        plan = await build_cascade_plan(db, result.scalars().all(), league_id=league_id)
        await _apply_dependents(db, plan, report)
        await _delete_season_rows(db, plan, report)

    _log_report("league", league_id, report)
    await _notify_seasons_deleted(notifier, report, league_id)
    return report


async def delete_season(
    db: AsyncSession, season_id: int, *, notifier: SeasonNotifier | None = None
) -> CascadeReport:
    """Delete a season and its memberships, deleting or detaching dependents.

    Raises:
        NotFoundError: The season does not exist.
    """
    report = CascadeReport()
    async with unit_of_work(db):
        season = await db.get(Season, season_id)
        if season is None:
            raise NotFoundError("Season not found")
        league_id = season.league_id
        plan = await build_cascade_plan(db, [season_id])
        await _apply_dependents(db, plan, report)
        await _delete_season_rows(db, plan, report)

    _log_report("season", season_id, report)
    await _notify_seasons_deleted(notifier, report, league_id)
    return report


async def delete_club(
    db: AsyncSession, club_id: int, *, notifier: SeasonNotifier | None = None
) -> CascadeReport:
    """Delete a club, its memberships, and free every player pointing at it.

    Raises:
        NotFoundError: The club does not exist.
    """
    report = CascadeReport()
    async with unit_of_work(db):
        if await db.get(Club, club_id) is None:
            raise NotFoundError("Club not found")
        result = await db.execute(
            select(SeasonClub.season_id).where(SeasonClub.club_id == club_id)  # type: ignore[call-overload]
        )
        season_ids = set(result.scalars().all())

        ok, released = await _best_effort(
            db,
            report,
            f"release players from club {club_id}",
            lambda: _release_players_from_club(db, club_id),
        )
        if ok:
            report.players_released = released

        report.season_clubs_removed = await delete_where(
            db, SeasonClub, SeasonClub.club_id == club_id  # type: ignore[arg-type]
        )
        await delete_where(db, Club, Club.id == club_id)  # type: ignore[arg-type]
        report.clubs_deleted.append(club_id)

    _log_report("club", club_id, report)
    if notifier is not None:
        await notifier.publish_many(SeasonEventName.CLUB_REMOVED, season_ids, clubId=club_id, deleted=True)
    return report


async def delete_player(
    db: AsyncSession, player_id: int, *, notifier: SeasonNotifier | None = None
) -> CascadeReport:
    """Delete a player and its memberships.

    Raises:
        NotFoundError: The player does not exist.
    """
    report = CascadeReport()
    async with unit_of_work(db):
        if await db.get(Player, player_id) is None:
            raise NotFoundError("Player not found")
        result = await db.execute(
            select(SeasonPlayer.season_id).where(SeasonPlayer.player_id == player_id)  # type: ignore[call-overload]
        )
        season_ids = set(result.scalars().all())

        report.season_players_removed = await delete_where(
            db, SeasonPlayer, SeasonPlayer.player_id == player_id  # type: ignore[arg-type]
        )
        await delete_where(db, Player, Player.id == player_id)  # type: ignore[arg-type]
        report.players_deleted.append(player_id)

    _log_report("player", player_id, report)
    if notifier is not None:
        await notifier.publish_many(
            SeasonEventName.PLAYER_REMOVED, season_ids, playerId=player_id, deleted=True
        )
    return report


def _log_report(kind: str, root_id: int, report: CascadeReport) -> None:
    logger.info(
        "Deleted %s %s: seasons=%s clubs deleted=%s detached=%s players deleted=%s detached=%s "
        "join rows=%d/%d",
        kind,
        root_id,
        report.seasons_deleted,
        report.clubs_deleted,
        report.clubs_detached,
        report.players_deleted,
        report.players_detached,
        report.season_clubs_removed,
        report.season_players_removed,
    )
    if report.failures:
        logger.warning(
            "%s %s deleted with %d cleanup failure(s); data may need the orphan sweep",
            kind.title(), root_id, len(report.failures),
        )
