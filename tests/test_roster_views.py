"""Service tests for the roster pointer and season roster views."""

import pytest

from xblade.models.roster import Projection
from xblade.schemas.players import Player
from xblade.services import membership_service as membership
from xblade.services.errors import DependencyError, NotFoundError
from xblade.services.query_service import build_roster_view, list_public_players
from xblade.services.roster_service import assign_player_club
from tests.factories import (
    fetch,
    join_club,
    join_player,
    make_club,
    make_league,
    make_player,
    make_season,
)


@pytest.mark.asyncio
async def test_new_club_and_player_land_in_public_roster(db_session, notifier) -> None:
    league = await make_league(db_session, name="Winter")
    season = await make_season(db_session, league, name="2024")

    eagles = await membership.create_club_in_season(db_session, season.id, {"name": "Eagles"})
    jane = await membership.create_player_in_season(
        db_session, season.id, {"name": "Jane", "position": "Center"}
    )
    assert eagles.entity.origin_season_id == season.id
    assert eagles.membership.assigned is True

    await assign_player_club(db_session, jane.entity.id, eagles.entity.id, notifier=notifier)
    view = await build_roster_view(db_session, season.id, Projection.PUBLIC)

    assert [g.club_name for g in view.clubs] == ["Eagles"]
    assert [p.name for p in view.clubs[0].players] == ["Jane"]
    assert view.free_agents == []


class TestAssignPlayerClub:
    @pytest.mark.asyncio
    async def test_sentinel_makes_free_agent(self, db_session) -> None:
        league = await make_league(db_session)
        season = await make_season(db_session, league)
        club = await make_club(db_session, "Eagles", origin=season)
        player = await make_player(db_session, "Jane Doe", origin=season, club=club)

        await assign_player_club(db_session, player.id, "free-agents")

        moved = await fetch(db_session, Player, player.id)
        assert moved is not None and moved.current_club_id is None

    @pytest.mark.asyncio
    async def test_club_outside_players_seasons_is_allowed(self, db_session) -> None:
        """The roster pointer does not depend on season membership."""
        league = await make_league(db_session)
        s1 = await make_season(db_session, league, name="S1")
        s2 = await make_season(db_session, league, name="S2")
        club = await make_club(db_session, "Elsewhere", origin=s2)
        player = await make_player(db_session, "Jane Doe", origin=s1)

        updated = await assign_player_club(db_session, player.id, str(club.id))

        assert updated.current_club_id == club.id

    @pytest.mark.asyncio
    async def test_unknown_player_or_club(self, db_session) -> None:
        league = await make_league(db_session)
        season = await make_season(db_session, league)
        player = await make_player(db_session, "Jane Doe", origin=season)

        with pytest.raises(NotFoundError):
            await assign_player_club(db_session, 999, None)
        with pytest.raises(DependencyError):
            await assign_player_club(db_session, player.id, 999)

    @pytest.mark.asyncio
    async def test_broadcasts_to_every_membership_season(
        self, db_session, notifier, recording_server
    ) -> None:
        league = await make_league(db_session)
        s1 = await make_season(db_session, league, name="S1")
        s2 = await make_season(db_session, league, name="S2")
        club = await make_club(db_session, "Eagles", origin=s1)
        player = await make_player(db_session, "Jane Doe", origin=s1)
        await join_player(db_session, s1, player)
        await join_player(db_session, s2, player)

        await assign_player_club(db_session, player.id, club.id, notifier=notifier)

        assert sorted(room for _, _, room in recording_server.emits) == [
            f"season:{s1.id}",
            f"season:{s2.id}",
        ]
        _, payload, _ = recording_server.emits[0]
        assert payload["playerId"] == player.id
        assert payload["clubId"] == club.id
        assert payload["previousClubId"] is None


class TestRosterProjections:
    @pytest.mark.asyncio
    async def test_public_hides_unassigned_and_their_players(self, db_session) -> None:
        league = await make_league(db_session)
        season = await make_season(db_session, league)
        shown = await make_club(db_session, "Shown", origin=season)
        hidden = await make_club(db_session, "Hidden", origin=season)
        await join_club(db_session, season, shown)
        await join_club(db_session, season, hidden, assigned=False)
        in_shown = await make_player(db_session, "Ann", origin=season, club=shown)
        in_hidden = await make_player(db_session, "Bo", origin=season, club=hidden)
        free = await make_player(db_session, "Cy", origin=season)
        parked = await make_player(db_session, "Di", origin=season)
        for player in (in_shown, in_hidden, free):
            await join_player(db_session, season, player)
        await join_player(db_session, season, parked, assigned=False)

        public = await list_public_players(db_session, season.id)
        view = await build_roster_view(db_session, season.id, Projection.PUBLIC)

        assert sorted(m.entity.name for m in public) == ["Ann", "Cy"]
        assert [g.club_name for g in view.clubs] == ["Shown"]
        assert [p.name for p in view.clubs[0].players] == ["Ann"]
        assert [p.name for p in view.free_agents] == ["Cy"]

    @pytest.mark.asyncio
    async def test_admin_shows_everything_flagged(self, db_session) -> None:
        league = await make_league(db_session)
        season = await make_season(db_session, league)
        other = await make_season(db_session, league, name="Other")
        hidden = await make_club(db_session, "Hidden", origin=season)
        stray = await make_club(db_session, "Stray", origin=other)
        await join_club(db_session, season, hidden, assigned=False)
        bo = await make_player(db_session, "Bo", origin=season, club=hidden)
        di = await make_player(db_session, "Di", origin=season, club=stray)
        await join_player(db_session, season, bo, assigned=False)
        await join_player(db_session, season, di)

        view = await build_roster_view(db_session, season.id, Projection.ADMIN)

        groups = {g.club_name: g for g in view.clubs}
        assert set(groups) == {"Hidden", "Stray"}
        assert groups["Hidden"].assigned is False and groups["Hidden"].member is True
        assert groups["Stray"].member is False
        assert [p.assigned for p in groups["Hidden"].players] == [False]
        assert [p.name for p in groups["Stray"].players] == ["Di"]
        assert view.free_agents == []
