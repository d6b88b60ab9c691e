"""Roster assignment: the Player.current_club_id pointer.

A player's current club is independent of season membership. Nothing here
checks that the club (or the player) belongs to any particular season; the
roster views decide what to show.
"""

from __future__ import annotations

import logging
from typing import Iterable, Protocol, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from xblade.models.realtime import SeasonEventName
from xblade.schemas.clubs import Club
from xblade.schemas.players import Player
from xblade.schemas.season_players import SeasonPlayer
from xblade.services.errors import DependencyError, NotFoundError
from xblade.services.realtime_service import SeasonNotifier
from xblade.utils.db_async import unit_of_work

logger = logging.getLogger(__name__)

# Values the UI sends when a player is dropped on the free-agent column
NO_CLUB_SENTINELS = frozenset({"", "free-agents", "no-club", "null", "none"})


class HasCurrentClub(Protocol):
    current_club_id: int | None


PlayerT = TypeVar("PlayerT", bound=HasCurrentClub)


def normalize_club_ref(club: int | str | None) -> int | None:
    """Collapse every "no club" spelling to None and parse real ids.

    Raises:
        DependencyError: ``club`` is neither a sentinel nor an integer id.
    """
    if club is None or isinstance(club, bool):
        return None
    if isinstance(club, int):
        return club
    text = str(club).strip()
    if text.casefold() in NO_CLUB_SENTINELS:
        return None
    try:
        return int(text)
    except ValueError:
        raise DependencyError(
            f"Unknown club reference {club!r}", fields={"current_club": "not a club id"}
        ) from None


def group_by_club(players: Iterable[PlayerT]) -> dict[int | None, list[PlayerT]]:
    """Partition players by current club.

    The ``None`` bucket holds free agents and is always present, even when
    empty. Club buckets appear in first-seen order; input order is kept
    within each bucket.
    """
    groups: dict[int | None, list[PlayerT]] = {None: []}
    for player in players:
        groups.setdefault(player.current_club_id, []).append(player)
    return groups


async def _player_season_ids(db: AsyncSession, player_id: int) -> set[int]:
    result = await db.execute(
        select(SeasonPlayer.season_id).where(SeasonPlayer.player_id == player_id)  # type: ignore[arg-type]
    )
    return set(result.scalars().all())


async def assign_player_club(
    db: AsyncSession,
    player_id: int,
    club: int | str | None,
    *,
    notifier: SeasonNotifier | None = None,
) -> Player:
    """Point a player at a club, or make them a free agent.

    Broadcasts ``player-club-updated`` to every season the player is a
    member of.

    Raises:
        NotFoundError: The player does not exist.
        DependencyError: ``club`` names no existing club.
    """
    club_id = normalize_club_ref(club)
    async with unit_of_work(db):
        player = await db.get(Player, player_id)
        if player is None:
            raise NotFoundError("Player not found")
        if club_id is not None and await db.get(Club, club_id) is None:
            raise DependencyError(
                f"Club {club_id} does not exist", fields={"current_club": "unknown club"}
            )
        previous = player.current_club_id
        player.current_club_id = club_id
        db.add(player)
        await db.flush()
        season_ids = await _player_season_ids(db, player_id)
        if player.origin_season_id is not None:
            season_ids.add(player.origin_season_id)

    logger.info(
        "Player %s moved from club %s to %s", player_id, previous, club_id or "free agents"
    )
    if notifier is not None:
        await notifier.publish_many(
            SeasonEventName.PLAYER_CLUB_UPDATED,
            season_ids,
            playerId=player_id,
            clubId=club_id,
            previousClubId=previous,
        )
    return player
