"""Season membership management for clubs and players.

Handles the season <-> club and season <-> player join rows: race-safe
adds, idempotent removals, assignment toggles, the combined create+add flow
and the member/available read views. Routes should be thin wrappers around
these functions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from xblade.models.membership import ClubFields, MemberFilter, PlayerFields
from xblade.models.realtime import SeasonEventName
from xblade.schemas.clubs import Club
from xblade.schemas.players import Player
from xblade.schemas.season_clubs import SeasonClub
from xblade.schemas.season_players import SeasonPlayer
from xblade.schemas.seasons import Season
from xblade.services.entity_store import FindOrCreateResult, delete_where, find_one, find_or_create
from xblade.services.errors import DependencyError, NotFoundError, ValidationFailed
from xblade.services.realtime_service import SeasonNotifier
from xblade.utils.db_async import unit_of_work

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", Club, Player)
LinkT = TypeVar("LinkT", SeasonClub, SeasonPlayer)
FieldsT = TypeVar("FieldsT", bound=BaseModel)


@dataclass(frozen=True)
class MemberKind:
    """Describes one entity/join-table pair so clubs and players share code."""

    label: str
    entity: type[SQLModel]
    link: type[SQLModel]
    link_column: str
    assigned_event: SeasonEventName
    removed_event: SeasonEventName


CLUBS = MemberKind(
    label="club",
    entity=Club,
    link=SeasonClub,
    link_column="club_id",
    assigned_event=SeasonEventName.CLUB_ASSIGNED,
    removed_event=SeasonEventName.CLUB_REMOVED,
)
PLAYERS = MemberKind(
    label="player",
    entity=Player,
    link=SeasonPlayer,
    link_column="player_id",
    assigned_event=SeasonEventName.PLAYER_ASSIGNED,
    removed_event=SeasonEventName.PLAYER_REMOVED,
)


@dataclass
class Member(Generic[EntityT, LinkT]):
    """An entity together with its membership row for one season."""

    entity: EntityT
    link: LinkT


@dataclass
class AddResult(Generic[LinkT]):
    membership: LinkT
    created: bool


@dataclass
class RemoveResult:
    season_id: int
    entity_id: int
    already_absent: bool


@dataclass
class CreateAndAddResult(Generic[EntityT, LinkT]):
    entity: EntityT
    membership: LinkT
    entity_created: bool
    membership_created: bool


def validate_fields(model: type[FieldsT], fields: FieldsT | dict[str, Any]) -> FieldsT:
    """Coerce raw input into ``model``, reporting field errors as ValidationFailed."""
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(fields)
    except PydanticValidationError as exc:
        errors = {
            ".".join(str(part) for part in err["loc"]) or "__root__": err["msg"]
            for err in exc.errors()
        }
        raise ValidationFailed("Invalid fields", fields=errors) from exc


async def _require_season(db: AsyncSession, season_id: int) -> Season:
    season = await db.get(Season, season_id)
    if season is None:
        raise DependencyError(
            f"Season {season_id} does not exist", fields={"season_id": "unknown season"}
        )
    return season


async def _add_member(
    db: AsyncSession,
    kind: MemberKind,
    season_id: int,
    entity_id: int,
    notifier: SeasonNotifier | None,
) -> AddResult:
    async with unit_of_work(db):
        await _require_season(db, season_id)
        if await db.get(kind.entity, entity_id) is None:
            raise DependencyError(
                f"{kind.label.title()} {entity_id} does not exist",
                fields={kind.link_column: f"unknown {kind.label}"},
            )
        outcome: FindOrCreateResult = await find_or_create(
            db,
            kind.link,
            key={"season_id": season_id, kind.link_column: entity_id},
            values={"assigned": True},
        )

    logger.info(
        "Added %s %s to season %s (%s)", kind.label, entity_id, season_id, outcome.status
    )
    if notifier is not None:
        await notifier.publish(
            kind.assigned_event,
            season_id,
            **{_id_key(kind): entity_id, "assigned": outcome.row.assigned},
        )
    return AddResult(membership=outcome.row, created=outcome.created)


async def _remove_member(
    db: AsyncSession,
    kind: MemberKind,
    season_id: int,
    entity_id: int,
    notifier: SeasonNotifier | None,
) -> RemoveResult:
    link_col = getattr(kind.link, kind.link_column)
    async with unit_of_work(db):
        removed = await delete_where(
            db,
            kind.link,
            kind.link.season_id == season_id,  # type: ignore[attr-defined]
            link_col == entity_id,
        )

    already_absent = removed == 0
    if already_absent:
        logger.info("%s %s was already absent from season %s", kind.label, entity_id, season_id)
    elif notifier is not None:
        await notifier.publish(kind.removed_event, season_id, **{_id_key(kind): entity_id})
    return RemoveResult(season_id=season_id, entity_id=entity_id, already_absent=already_absent)


async def _set_assignment(
    db: AsyncSession,
    kind: MemberKind,
    season_id: int,
    entity_id: int,
    assigned: bool,
    notifier: SeasonNotifier | None,
) -> Member:
    async with unit_of_work(db):
        link = await find_one(db, kind.link, season_id=season_id, **{kind.link_column: entity_id})
        entity = await db.get(kind.entity, entity_id)
        if link is None or entity is None:
            raise NotFoundError(f"{kind.label.title()} not found in season")
        link.assigned = assigned
        db.add(link)
        await db.flush()

    if notifier is not None:
        await notifier.publish(
            kind.assigned_event, season_id, **{_id_key(kind): entity_id, "assigned": assigned}
        )
    return Member(entity=entity, link=link)


def _id_key(kind: MemberKind) -> str:
    return "clubId" if kind is CLUBS else "playerId"


# Clubs -----------------------------------------------------------------------


async def add_club_to_season(
    db: AsyncSession, season_id: int, club_id: int, *, notifier: SeasonNotifier | None = None
) -> AddResult[SeasonClub]:
    """Make a club a member of a season; repeated calls return the same row."""
    return await _add_member(db, CLUBS, season_id, club_id, notifier)


async def remove_club_from_season(
    db: AsyncSession, season_id: int, club_id: int, *, notifier: SeasonNotifier | None = None
) -> RemoveResult:
    """Drop a club's membership. Absence is reported, never raised."""
    return await _remove_member(db, CLUBS, season_id, club_id, notifier)


async def set_club_assignment(
    db: AsyncSession,
    season_id: int,
    club_id: int,
    assigned: bool,
    *,
    notifier: SeasonNotifier | None = None,
) -> Member[Club, SeasonClub]:
    return await _set_assignment(db, CLUBS, season_id, club_id, assigned, notifier)


async def create_club_in_season(
    db: AsyncSession,
    season_id: int,
    fields: ClubFields | dict[str, Any],
    *,
    notifier: SeasonNotifier | None = None,
) -> CreateAndAddResult[Club, SeasonClub]:
    """Create a club stamped with ``season_id`` as its origin and join it.

    The club is found-or-created on (origin season, name), so duplicate
    concurrent submissions converge on one club and one membership.
    """
    data = validate_fields(ClubFields, fields)
    async with unit_of_work(db):
        await _require_season(db, season_id)
        club = await find_or_create(
            db,
            Club,
            key={"origin_season_id": season_id, "name": data.name},
            values={"web_url": data.web_url, "description": data.description},
        )
        link = await find_or_create(
            db,
            SeasonClub,
            key={"season_id": season_id, "club_id": club.row.id},
            values={"assigned": True},
        )

    logger.info(
        "Club %r (%s) in season %s: club %s, membership %s",
        data.name, club.row.id, season_id, club.status, link.status,
    )
    if notifier is not None:
        await notifier.publish(
            SeasonEventName.CLUB_ASSIGNED, season_id, clubId=club.row.id, assigned=link.row.assigned
        )
    return CreateAndAddResult(
        entity=club.row,
        membership=link.row,
        entity_created=club.created,
        membership_created=link.created,
    )


# Players ---------------------------------------------------------------------


async def add_player_to_season(
    db: AsyncSession, season_id: int, player_id: int, *, notifier: SeasonNotifier | None = None
) -> AddResult[SeasonPlayer]:
    """Make a player a member of a season; repeated calls return the same row."""
    return await _add_member(db, PLAYERS, season_id, player_id, notifier)


async def remove_player_from_season(
    db: AsyncSession, season_id: int, player_id: int, *, notifier: SeasonNotifier | None = None
) -> RemoveResult:
    """Drop a player's membership. Absence is reported, never raised."""
    return await _remove_member(db, PLAYERS, season_id, player_id, notifier)


async def set_player_assignment(
    db: AsyncSession,
    season_id: int,
    player_id: int,
    assigned: bool,
    *,
    notifier: SeasonNotifier | None = None,
) -> Member[Player, SeasonPlayer]:
    return await _set_assignment(db, PLAYERS, season_id, player_id, assigned, notifier)


async def create_player_in_season(
    db: AsyncSession,
    season_id: int,
    fields: PlayerFields | dict[str, Any],
    *,
    notifier: SeasonNotifier | None = None,
) -> CreateAndAddResult[Player, SeasonPlayer]:
    """Create a free-agent player originating in ``season_id`` and join it."""
    data = validate_fields(PlayerFields, fields)
    async with unit_of_work(db):
        await _require_season(db, season_id)
        player = await find_or_create(
            db,
            Player,
            key={"origin_season_id": season_id, "name": data.name},
            values={
                "position": data.position,
                "jersey_number": data.jersey_number,
                "current_club_id": None,
            },
        )
        link = await find_or_create(
            db,
            SeasonPlayer,
            key={"season_id": season_id, "player_id": player.row.id},
            values={"assigned": True},
        )

    logger.info(
        "Player %r (%s) in season %s: player %s, membership %s",
        data.name, player.row.id, season_id, player.status, link.status,
    )
    if notifier is not None:
        await notifier.publish(
            SeasonEventName.PLAYER_ASSIGNED,
            season_id,
            playerId=player.row.id,
            assigned=link.row.assigned,
        )
    return CreateAndAddResult(
        entity=player.row,
        membership=link.row,
        entity_created=player.created,
        membership_created=link.created,
    )


# Read views ------------------------------------------------------------------


def _filter_clause(kind: MemberKind, member_filter: MemberFilter):
    assigned_col = kind.link.assigned  # type: ignore[attr-defined]
    if member_filter is MemberFilter.ASSIGNED:
        return assigned_col.is_(True)
    if member_filter is MemberFilter.UNASSIGNED:
        return assigned_col.is_(False)
    return None


async def _list_members(
    db: AsyncSession, kind: MemberKind, season_id: int, member_filter: MemberFilter
) -> list[Member]:
    link_col = getattr(kind.link, kind.link_column)
    query = (
        select(kind.link, kind.entity)  # type: ignore[call-overload]
        .outerjoin(kind.entity, kind.entity.id == link_col)  # type: ignore[attr-defined]
        .where(kind.link.season_id == season_id)  # type: ignore[attr-defined]
    )
    clause = _filter_clause(kind, member_filter)
    if clause is not None:
        query = query.where(clause)

    rows = (await db.execute(query)).all()
    members = [Member(entity=entity, link=link) for link, entity in rows if entity is not None]
    dropped = len(rows) - len(members)
    if dropped:
        logger.debug(
            "Dropped %d %s memberships in season %s whose entity no longer exists",
            dropped, kind.label, season_id,
        )
    members.sort(key=lambda m: (m.entity.name.casefold(), m.entity.id))
    return members


async def list_season_clubs(
    db: AsyncSession, season_id: int, member_filter: MemberFilter = MemberFilter.ALL
) -> list[Member[Club, SeasonClub]]:
    """List clubs joined to a season, optionally filtered by assignment."""
    return await _list_members(db, CLUBS, season_id, member_filter)


async def list_season_players(
    db: AsyncSession, season_id: int, member_filter: MemberFilter = MemberFilter.ALL
) -> list[Member[Player, SeasonPlayer]]:
    """List players joined to a season, optionally filtered by assignment."""
    return await _list_members(db, PLAYERS, season_id, member_filter)


@dataclass
class AvailableEntry(Generic[EntityT]):
    """An entity the admin can (re)assign to a season.

    ``link`` is None for entities never joined to the season, or the
    ``assigned=False`` membership row for parked members.
    """

    entity: EntityT
    link: Any | None = None

    @property
    def joined(self) -> bool:
        return self.link is not None


async def _list_available(db: AsyncSession, kind: MemberKind, season_id: int) -> list[AvailableEntry]:
    link_col = getattr(kind.link, kind.link_column)
    joined = select(link_col).where(kind.link.season_id == season_id)  # type: ignore[attr-defined]
    result = await db.execute(
        select(kind.entity).where(
            kind.entity.origin_season_id == season_id,  # type: ignore[attr-defined]
            kind.entity.active.is_(True),  # type: ignore[attr-defined]
            kind.entity.id.not_in(joined),  # type: ignore[attr-defined]
        )
    )
    entries = [AvailableEntry(entity=entity) for entity in result.scalars().all()]
    parked = await _list_members(db, kind, season_id, MemberFilter.UNASSIGNED)
    entries.extend(AvailableEntry(entity=m.entity, link=m.link) for m in parked)
    entries.sort(key=lambda e: (e.entity.name.casefold(), e.entity.id))
    return entries


async def list_available_clubs(db: AsyncSession, season_id: int) -> list[AvailableEntry[Club]]:
    """Clubs the admin can place in ``season_id``.

    That is active clubs originating in the season with no membership row
    there, plus member clubs currently parked with ``assigned=False``.
    """
    return await _list_available(db, CLUBS, season_id)


async def list_available_players(db: AsyncSession, season_id: int) -> list[AvailableEntry[Player]]:
    """Players the admin can place in ``season_id`` (see list_available_clubs)."""
    return await _list_available(db, PLAYERS, season_id)
