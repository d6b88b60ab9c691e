"""Orphan sweep for membership data.

Cascade deletes hold no locks, so an add-member racing a season delete can
re-insert a join row right after the season's rows were purged, and a failed
best-effort cleanup can leave a dangling roster pointer. This sweep removes
join rows whose season or entity no longer exists and nulls
``current_club_id`` values that point at missing clubs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from xblade.schemas.clubs import Club
from xblade.schemas.players import Player
from xblade.schemas.season_clubs import SeasonClub
from xblade.schemas.season_players import SeasonPlayer
from xblade.schemas.seasons import Season
from xblade.services.entity_store import delete_where, update_where
from xblade.utils.db_async import unit_of_work

logger = logging.getLogger(__name__)


@dataclass
class OrphanSweepResult:
    season_clubs_removed: int = 0
    season_players_removed: int = 0
    players_released: int = 0

    @property
    def total(self) -> int:
        return self.season_clubs_removed + self.season_players_removed + self.players_released


async def purge_orphan_memberships(db: AsyncSession) -> OrphanSweepResult:
    """Delete join rows and roster pointers that reference missing rows."""
    result = OrphanSweepResult()
    season_ids = select(Season.id)
    club_ids = select(Club.id)
    player_ids = select(Player.id)

    async with unit_of_work(db):
        result.season_clubs_removed = await delete_where(
            db,
            SeasonClub,
            SeasonClub.season_id.not_in(season_ids) | SeasonClub.club_id.not_in(club_ids),  # type: ignore[attr-defined]
        )
        result.season_players_removed = await delete_where(
            db,
            SeasonPlayer,
            SeasonPlayer.season_id.not_in(season_ids) | SeasonPlayer.player_id.not_in(player_ids),  # type: ignore[attr-defined]
        )
        result.players_released = await update_where(
            db,
            Player,
            {"current_club_id": None},
            Player.current_club_id.is_not(None),  # type: ignore[union-attr]
            Player.current_club_id.not_in(club_ids),  # type: ignore[union-attr]
        )

    if result.total:
        logger.warning(
            "Orphan sweep: removed %d season_clubs, %d season_players; released %d players",
            result.season_clubs_removed,
            result.season_players_removed,
            result.players_released,
        )
    else:
        logger.info("Orphan sweep: nothing to do")
    return result
