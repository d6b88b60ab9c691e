"""Initial schema: leagues, seasons, clubs, players and season memberships.

Revision ID: 20260301_000001
Revises:
Create Date: 2026-03-01 00:00:01
"""

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa

revision = "20260301_000001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return cols


def upgrade() -> None:
    op.create_table(
        "leagues",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_leagues_name", "leagues", ["name"], unique=False)
    op.create_index("ix_leagues_active", "leagues", ["active"], unique=False)

    op.create_table(
        "seasons",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id"), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_seasons_league_id", "seasons", ["league_id"], unique=False)
    op.create_index("ix_seasons_active", "seasons", ["active"], unique=False)

    op.create_table(
        "clubs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("web_url", sa.String(length=500), nullable=True),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("origin_season_id", sa.Integer(), sa.ForeignKey("seasons.id"), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("origin_season_id", "name", name="uq_clubs_origin_season_name"),
    )
    op.create_index("ix_clubs_name", "clubs", ["name"], unique=False)
    op.create_index("ix_clubs_origin_season_id", "clubs", ["origin_season_id"], unique=False)
    op.create_index("ix_clubs_active", "clubs", ["active"], unique=False)

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("position", sa.String(length=50), nullable=False),
        sa.Column("jersey_number", sa.Integer(), nullable=True),
        sa.Column("current_club_id", sa.Integer(), sa.ForeignKey("clubs.id"), nullable=True),
        sa.Column("origin_season_id", sa.Integer(), sa.ForeignKey("seasons.id"), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("origin_season_id", "name", name="uq_players_origin_season_name"),
    )
    op.create_index("ix_players_name", "players", ["name"], unique=False)
    op.create_index("ix_players_current_club_id", "players", ["current_club_id"], unique=False)
    op.create_index("ix_players_origin_season_id", "players", ["origin_season_id"], unique=False)
    op.create_index("ix_players_active", "players", ["active"], unique=False)

    op.create_table(
        "season_clubs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("season_id", sa.Integer(), sa.ForeignKey("seasons.id"), nullable=False),
        sa.Column("club_id", sa.Integer(), sa.ForeignKey("clubs.id"), nullable=False),
        sa.Column("assigned", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint("season_id", "club_id", name="uq_season_clubs_season_club"),
    )
    op.create_index("ix_season_clubs_season_id", "season_clubs", ["season_id"], unique=False)
    op.create_index("ix_season_clubs_club_id", "season_clubs", ["club_id"], unique=False)

    op.create_table(
        "season_players",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("season_id", sa.Integer(), sa.ForeignKey("seasons.id"), nullable=False),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("assigned", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint("season_id", "player_id", name="uq_season_players_season_player"),
    )
    op.create_index("ix_season_players_season_id", "season_players", ["season_id"], unique=False)
    op.create_index("ix_season_players_player_id", "season_players", ["player_id"], unique=False)


def downgrade() -> None:
    op.drop_table("season_players")
    op.drop_table("season_clubs")
    op.drop_table("players")
    op.drop_table("clubs")
    op.drop_table("seasons")
    op.drop_table("leagues")
