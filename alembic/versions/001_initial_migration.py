"""Initial migration: tournaments, pools, registrations, matches, club admins, bracket locks

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("tournament_type", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tournament_club_id"), "tournament", ["club_id"], unique=False)

    op.create_table(
        "tournamentpool",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("pool_number", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "pool_number", name="uq_pool_tournament_number"),
    )
    op.create_index(op.f("ix_tournamentpool_tournament_id"), "tournamentpool", ["tournament_id"], unique=False)

    op.create_table(
        "registration",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("team_name", sa.String(), nullable=True),
        sa.Column("pool_id", sa.Integer(), nullable=True),
        sa.Column("pair_total_rank", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["pool_id"], ["tournamentpool.id"]),
    )
    op.create_index(op.f("ix_registration_tournament_id"), "registration", ["tournament_id"], unique=False)
    op.create_index(op.f("ix_registration_pool_id"), "registration", ["pool_id"], unique=False)

    # Pool matches (pool_id set) and final bracket matches (pool_id null)
    op.create_table(
        "tournamentmatch",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("pool_id", sa.Integer(), nullable=True),
        sa.Column("round_type", sa.String(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("match_order", sa.Integer(), nullable=True),
        sa.Column("team1_registration_id", sa.Integer(), nullable=True),
        sa.Column("team2_registration_id", sa.Integer(), nullable=True),
        sa.Column("winner_registration_id", sa.Integer(), nullable=True),
        sa.Column("is_bye", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("score_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["pool_id"], ["tournamentpool.id"]),
        sa.ForeignKeyConstraint(["team1_registration_id"], ["registration.id"]),
        sa.ForeignKeyConstraint(["team2_registration_id"], ["registration.id"]),
        sa.ForeignKeyConstraint(["winner_registration_id"], ["registration.id"]),
        sa.UniqueConstraint(
            "tournament_id", "round_type", "round_number", "match_order", name="uq_match_tournament_round_order"
        ),
    )
    op.create_index(op.f("ix_tournamentmatch_tournament_id"), "tournamentmatch", ["tournament_id"], unique=False)
    op.create_index(op.f("ix_tournamentmatch_pool_id"), "tournamentmatch", ["pool_id"], unique=False)
    op.create_index(op.f("ix_tournamentmatch_round_type"), "tournamentmatch", ["round_type"], unique=False)

    op.create_table(
        "clubadmin",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("activated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("club_id", "user_id", name="uq_clubadmin_club_user"),
    )
    op.create_index(op.f("ix_clubadmin_club_id"), "clubadmin", ["club_id"], unique=False)
    op.create_index(op.f("ix_clubadmin_user_id"), "clubadmin", ["user_id"], unique=False)

    op.create_table(
        "bracketgenerationlock",
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("token", sa.String(length=36), nullable=False),
        sa.Column("acquired_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("tournament_id"),
    )


def downgrade() -> None:
    op.drop_table("bracketgenerationlock")
    op.drop_index(op.f("ix_clubadmin_user_id"), table_name="clubadmin")
    op.drop_index(op.f("ix_clubadmin_club_id"), table_name="clubadmin")
    op.drop_table("clubadmin")
    op.drop_index(op.f("ix_tournamentmatch_round_type"), table_name="tournamentmatch")
    op.drop_index(op.f("ix_tournamentmatch_pool_id"), table_name="tournamentmatch")
    op.drop_index(op.f("ix_tournamentmatch_tournament_id"), table_name="tournamentmatch")
    op.drop_table("tournamentmatch")
    op.drop_index(op.f("ix_registration_pool_id"), table_name="registration")
    op.drop_index(op.f("ix_registration_tournament_id"), table_name="registration")
    op.drop_table("registration")
    op.drop_index(op.f("ix_tournamentpool_tournament_id"), table_name="tournamentpool")
    op.drop_table("tournamentpool")
    op.drop_index(op.f("ix_tournament_club_id"), table_name="tournament")
    op.drop_table("tournament")
