"""Derived read models for a season's roster.

Builds the club-grouped roster from membership rows and Player.current_club_id.
Two projections:

- public: only ``assigned=True`` clubs and players; a player whose current
  club is not an assigned club of the season is hidden. Free agents show.
- admin: every membership, each flagged with ``assigned``. Players pointing
  at a club that has no membership in the season still appear, under a
  group marked ``member=False``.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from xblade.models.membership import MemberFilter
from xblade.models.roster import Projection, RosterGroup, RosterPlayer, RosterView
from xblade.schemas.clubs import Club
from xblade.services.membership_service import Member, list_season_clubs, list_season_players
from xblade.services.roster_service import group_by_club

logger = logging.getLogger(__name__)


def _roster_player(member: Member) -> RosterPlayer:
    return RosterPlayer.model_validate(member.entity, from_attributes=True).model_copy(
        update={"assigned": member.link.assigned}
    )


async def list_public_clubs(db: AsyncSession, season_id: int) -> list[Club]:
    """Clubs visible to the public for a season (assigned memberships only)."""
    members = await list_season_clubs(db, season_id, MemberFilter.ASSIGNED)
    return [m.entity for m in members]


async def list_public_players(db: AsyncSession, season_id: int) -> list[Member]:
    """Assigned players who are free agents or sit in an assigned club."""
    visible_clubs = {club.id for club in await list_public_clubs(db, season_id)}
    members = await list_season_players(db, season_id, MemberFilter.ASSIGNED)
    return [
        m for m in members
        if m.entity.current_club_id is None or m.entity.current_club_id in visible_clubs
    ]


async def build_roster_view(
    db: AsyncSession, season_id: int, projection: Projection = Projection.PUBLIC
) -> RosterView:
    """Group a season's players by current club for the given projection."""
    if projection is Projection.PUBLIC:
        club_members = await list_season_clubs(db, season_id, MemberFilter.ASSIGNED)
        player_members = await list_public_players(db, season_id)
    else:
        club_members = await list_season_clubs(db, season_id, MemberFilter.ALL)
        player_members = await list_season_players(db, season_id, MemberFilter.ALL)

    grouped = group_by_club([_roster_player(m) for m in player_members])

    groups: dict[int, RosterGroup] = {
        m.entity.id: RosterGroup(
            club_id=m.entity.id,
            club_name=m.entity.name,
            member=True,
            assigned=m.link.assigned,
        )
        for m in club_members
    }

    # Admin only: players pointing outside the season's club list
    stray_ids = [cid for cid in grouped if cid is not None and cid not in groups]
    if stray_ids:
        result = await db.execute(select(Club).where(Club.id.in_(stray_ids)))  # type: ignore[union-attr]
        for club in result.scalars().all():
            groups[club.id] = RosterGroup(
                club_id=club.id, club_name=club.name, member=False, assigned=False
            )
        logger.debug(
            "Season %s roster has players in %d non-member club(s)", season_id, len(stray_ids)
        )

    for club_id, players in grouped.items():
        if club_id is not None and club_id in groups:
            groups[club_id].players = players

    return RosterView(
        season_id=season_id,
        projection=projection,
        clubs=sorted(groups.values(), key=lambda g: ((g.club_name or "").casefold(), g.club_id or 0)),
        free_agents=grouped[None],
    )
