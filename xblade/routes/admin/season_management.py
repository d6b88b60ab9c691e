"""Admin season-management routes: memberships, assignment flags and roster."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from xblade.models.membership import (
    AddClubRequest,
    AddMemberResponse,
    AddPlayerRequest,
    AssignmentUpdate,
    AvailableClub,
    AvailablePlayer,
    ClubRead,
    CreateClubRequest,
    CreateClubResponse,
    CreatePlayerRequest,
    CreatePlayerResponse,
    MemberFilter,
    MembershipRead,
    PlayerClubUpdate,
    PlayerRead,
    RemoveMemberResponse,
    SeasonClubMember,
    SeasonPlayerMember,
)
from xblade.models.roster import Projection, RosterView
from xblade.routes.deps import get_notifier
from xblade.services import membership_service as membership
from xblade.services.query_service import build_roster_view
from xblade.services.realtime_service import SeasonNotifier
from xblade.services.roster_service import assign_player_club
from xblade.utils.db_async import get_session

router = APIRouter(prefix="/season-management", tags=["admin-season-management"])


def _club_member(member: membership.Member) -> SeasonClubMember:
    return SeasonClubMember(
        **ClubRead.model_validate(member.entity).model_dump(),
        assigned=member.link.assigned,
        season_club_id=member.link.id,
    )


def _player_member(member: membership.Member) -> SeasonPlayerMember:
    return SeasonPlayerMember(
        **PlayerRead.model_validate(member.entity).model_dump(),
        assigned=member.link.assigned,
        season_player_id=member.link.id,
    )


def _removed(result: membership.RemoveResult, label: str) -> RemoveMemberResponse:
    message = (
        f"{label} was already removed from season"
        if result.already_absent
        else f"{label} removed from season successfully"
    )
    return RemoveMemberResponse(already_absent=result.already_absent, message=message)


def _assigned_filter(assigned: bool | None) -> MemberFilter:
    if assigned is None:
        return MemberFilter.ALL
    return MemberFilter.ASSIGNED if assigned else MemberFilter.UNASSIGNED


# Clubs -----------------------------------------------------------------------


@router.post("/clubs/create", response_model=CreateClubResponse, status_code=201)
async def create_club_and_add_to_season(
    body: CreateClubRequest,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> CreateClubResponse:
    """Create a club in a season and join it in one step."""
    result = await membership.create_club_in_season(
        db, body.season_id, body, notifier=notifier
    )
    return CreateClubResponse(
        created=result.entity_created,
        club=ClubRead.model_validate(result.entity),
        membership=MembershipRead.model_validate(result.membership),
    )


@router.post("/clubs", response_model=AddMemberResponse, status_code=201)
async def add_club_to_season(
    body: AddClubRequest,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> AddMemberResponse:
    result = await membership.add_club_to_season(db, body.season_id, body.club_id, notifier=notifier)
    return AddMemberResponse(
        created=result.created,
        membership=MembershipRead.model_validate(result.membership),
        entity_id=body.club_id,
    )


@router.delete("/clubs/{season_id}/{club_id}", response_model=RemoveMemberResponse)
async def remove_club_from_season(
    season_id: int,
    club_id: int,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> RemoveMemberResponse:
    result = await membership.remove_club_from_season(db, season_id, club_id, notifier=notifier)
    return _removed(result, "Club")


@router.get("/clubs/available/{season_id}", response_model=List[AvailableClub])
async def get_available_clubs(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> List[AvailableClub]:
    """Clubs originating in the season that are unjoined or parked as unassigned."""
    entries = await membership.list_available_clubs(db, season_id)
    return [
        AvailableClub.model_validate(e.entity).model_copy(
            update={"assigned": e.link.assigned, "season_club_id": e.link.id} if e.joined else {}
        )
        for e in entries
    ]


@router.get("/clubs/{season_id}", response_model=List[SeasonClubMember])
async def get_season_clubs(
    season_id: int,
    assigned: bool | None = Query(default=None, description="Filter by assignment flag"),
    db: AsyncSession = Depends(get_session),
) -> List[SeasonClubMember]:
    members = await membership.list_season_clubs(db, season_id, _assigned_filter(assigned))
    return [_club_member(m) for m in members]


@router.put("/clubs/{season_id}/{club_id}/assignment", response_model=SeasonClubMember)
async def update_club_assignment(
    season_id: int,
    club_id: int,
    body: AssignmentUpdate,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> SeasonClubMember:
    member = await membership.set_club_assignment(
        db, season_id, club_id, body.assigned, notifier=notifier
    )
    return _club_member(member)


# Players ---------------------------------------------------------------------


@router.post("/players/create", response_model=CreatePlayerResponse, status_code=201)
async def create_player_and_add_to_season(
    body: CreatePlayerRequest,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> CreatePlayerResponse:
    """Create a free-agent player in a season and join it in one step."""
    result = await membership.create_player_in_season(
        db, body.season_id, body, notifier=notifier
    )
    return CreatePlayerResponse(
        created=result.entity_created,
        player=PlayerRead.model_validate(result.entity),
        membership=MembershipRead.model_validate(result.membership),
    )


@router.post("/players", response_model=AddMemberResponse, status_code=201)
async def add_player_to_season(
    body: AddPlayerRequest,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> AddMemberResponse:
    result = await membership.add_player_to_season(
        db, body.season_id, body.player_id, notifier=notifier
    )
    return AddMemberResponse(
        created=result.created,
        membership=MembershipRead.model_validate(result.membership),
        entity_id=body.player_id,
    )


@router.delete("/players/{season_id}/{player_id}", response_model=RemoveMemberResponse)
async def remove_player_from_season(
    season_id: int,
    player_id: int,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> RemoveMemberResponse:
    result = await membership.remove_player_from_season(db, season_id, player_id, notifier=notifier)
    return _removed(result, "Player")


@router.get("/players/available/{season_id}", response_model=List[AvailablePlayer])
async def get_available_players(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> List[AvailablePlayer]:
    entries = await membership.list_available_players(db, season_id)
    return [
        AvailablePlayer.model_validate(e.entity).model_copy(
            update={"assigned": e.link.assigned, "season_player_id": e.link.id} if e.joined else {}
        )
        for e in entries
    ]


@router.get("/players/{season_id}", response_model=List[SeasonPlayerMember])
async def get_season_players(
    season_id: int,
    assigned: bool | None = Query(default=None, description="Filter by assignment flag"),
    db: AsyncSession = Depends(get_session),
) -> List[SeasonPlayerMember]:
    members = await membership.list_season_players(db, season_id, _assigned_filter(assigned))
    return [_player_member(m) for m in members]


@router.put("/players/{season_id}/{player_id}/assignment", response_model=SeasonPlayerMember)
async def update_player_assignment(
    season_id: int,
    player_id: int,
    body: AssignmentUpdate,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> SeasonPlayerMember:
    member = await membership.set_player_assignment(
        db, season_id, player_id, body.assigned, notifier=notifier
    )
    return _player_member(member)


# Roster ----------------------------------------------------------------------


@router.put("/roster/players/{player_id}/club", response_model=PlayerRead)
async def update_player_club(
    player_id: int,
    body: PlayerClubUpdate,
    db: AsyncSession = Depends(get_session),
    notifier: SeasonNotifier = Depends(get_notifier),
) -> PlayerRead:
    """Move a player to a club, or to free agents via any "no club" value."""
    player = await assign_player_club(db, player_id, body.current_club, notifier=notifier)
    return PlayerRead.model_validate(player)


@router.get("/roster/{season_id}", response_model=RosterView)
async def get_admin_roster(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> RosterView:
    """Admin roster: assigned and unassigned memberships, flagged."""
    return await build_roster_view(db, season_id, Projection.ADMIN)
