"""Route tests for the admin season-management and deletion APIs."""

import pytest
from httpx import AsyncClient

from xblade.schemas.season_clubs import SeasonClub
from tests.factories import count, join_club, join_player, make_club, make_league, make_player, make_season

BASE = "/api/v1/admin/season-management"


@pytest.mark.asyncio
async def test_add_club_twice_returns_same_membership(app_client: AsyncClient, db_session) -> None:
    league = await make_league(db_session)
    season = await make_season(db_session, league)
    club = await make_club(db_session, "Eagles", origin=season)
    body = {"season_id": season.id, "club_id": club.id}

    first = await app_client.post(f"{BASE}/clubs", json=body)
    second = await app_client.post(f"{BASE}/clubs", json=body)

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["created"] is True
    assert second.json()["created"] is False
    assert first.json()["membership"]["id"] == second.json()["membership"]["id"]
    assert await count(db_session, SeasonClub) == 1


@pytest.mark.asyncio
async def test_add_to_unknown_season_is_400_with_fields(app_client: AsyncClient, db_session) -> None:
    league = await make_league(db_session)
    season = await make_season(db_session, league)
    club = await make_club(db_session, "Eagles", origin=season)

    response = await app_client.post(f"{BASE}/clubs", json={"season_id": 999, "club_id": club.id})

    assert response.status_code == 400
    payload = response.json()
    assert payload["success"] is False
    assert payload["error"] == "dependency_error"
    assert payload["fields"] == {"season_id": "unknown season"}


@pytest.mark.asyncio
async def test_create_player_validation_is_400(app_client: AsyncClient, db_session) -> None:
    league = await make_league(db_session)
    season = await make_season(db_session, league)

    response = await app_client.post(
        f"{BASE}/players/create",
        json={"season_id": season.id, "name": "Jane Doe", "position": "C", "jersey_number": 120},
    )

    assert response.status_code == 400
    assert "jersey_number" in response.json()["fields"]


@pytest.mark.asyncio
async def test_create_club_then_list_and_toggle(app_client: AsyncClient, db_session, recording_server) -> None:
    league = await make_league(db_session)
    season = await make_season(db_session, league)

    created = await app_client.post(
        f"{BASE}/clubs/create", json={"season_id": season.id, "name": "Eagles", "web_url": ""}
    )
    assert created.status_code == 201
    club_id = created.json()["club"]["id"]
    assert created.json()["club"]["origin_season_id"] == season.id
    assert created.json()["club"]["web_url"] is None

    toggled = await app_client.put(
        f"{BASE}/clubs/{season.id}/{club_id}/assignment", json={"assigned": False}
    )
    assert toggled.status_code == 200
    assert toggled.json()["assigned"] is False

    assigned = await app_client.get(f"{BASE}/clubs/{season.id}", params={"assigned": "true"})
    everything = await app_client.get(f"{BASE}/clubs/{season.id}")
    available = await app_client.get(f"{BASE}/clubs/available/{season.id}")

    assert assigned.json() == []
    assert [c["id"] for c in everything.json()] == [club_id]
    assert [(c["id"], c["assigned"]) for c in available.json()] == [(club_id, False)]
    assert recording_server.events(f"season:{season.id}") == [
        "season:club-assigned",
        "season:club-assigned",
    ]


@pytest.mark.asyncio
async def test_available_players_include_unjoined(app_client: AsyncClient, db_session) -> None:
    league = await make_league(db_session)
    season = await make_season(db_session, league)
    player = await make_player(db_session, "Jane Doe", origin=season)

    response = await app_client.get(f"{BASE}/players/available/{season.id}")

    assert response.status_code == 200
    assert response.json()[0]["id"] == player.id
    assert response.json()[0]["season_player_id"] is None


@pytest.mark.asyncio
async def test_assignment_on_missing_membership_is_404(app_client: AsyncClient, db_session) -> None:
    league = await make_league(db_session)
    season = await make_season(db_session, league)
    player = await make_player(db_session, "Jane Doe", origin=season)

    response = await app_client.put(
        f"{BASE}/players/{season.id}/{player.id}/assignment", json={"assigned": True}
    )

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_remove_absent_member_is_200(app_client: AsyncClient, db_session) -> None:
    league = await make_league(db_session)
    season = await make_season(db_session, league)

    response = await app_client.delete(f"{BASE}/players/{season.id}/31337")

    assert response.status_code == 200
    assert response.json()["already_absent"] is True


@pytest.mark.asyncio
async def test_roster_drag_to_free_agents(app_client: AsyncClient, db_session, recording_server) -> None:
    league = await make_league(db_session)
    season = await make_season(db_session, league)
    club = await make_club(db_session, "Eagles", origin=season)
    player = await make_player(db_session, "Jane Doe", origin=season, club=club)
    await join_club(db_session, season, club)
    await join_player(db_session, season, player)

    response = await app_client.put(
        f"{BASE}/roster/players/{player.id}/club", json={"current_club": "free-agents"}
    )
    assert response.status_code == 200
    assert response.json()["current_club_id"] is None
    assert recording_server.events() == ["season:player-club-updated"]

    roster = await app_client.get(f"{BASE}/roster/{season.id}")
    assert roster.json()["projection"] == "admin"
    assert [p["id"] for p in roster.json()["free_agents"]] == [player.id]


@pytest.mark.asyncio
async def test_delete_league_returns_report(app_client: AsyncClient, db_session) -> None:
    league = await make_league(db_session)
    season = await make_season(db_session, league)
    club = await make_club(db_session, "Eagles", origin=season)
    await join_club(db_session, season, club)

    response = await app_client.delete(f"/api/v1/admin/leagues/{league.id}")

    assert response.status_code == 200
    report = response.json()
    assert report["success"] is True
    assert report["seasons_deleted"] == [season.id]
    assert report["clubs_deleted"] == [club.id]
    assert report["season_clubs_removed"] == 1


@pytest.mark.asyncio
async def test_delete_missing_season_is_404(app_client: AsyncClient) -> None:
    response = await app_client.delete("/api/v1/admin/seasons/999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_non_admin_is_forbidden(app_client: AsyncClient) -> None:
    from xblade.main import app
    from xblade.routes.deps import Principal, get_principal

    app.dependency_overrides[get_principal] = lambda: Principal(id="viewer", is_admin=False)
    response = await app_client.get(f"{BASE}/clubs/1")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_missing_principal_is_unauthorized(app_client: AsyncClient) -> None:
    from xblade.main import app
    from xblade.routes.deps import get_principal

    app.dependency_overrides.pop(get_principal, None)
    response = await app_client.delete("/api/v1/admin/clubs/1")
    assert response.status_code == 401
