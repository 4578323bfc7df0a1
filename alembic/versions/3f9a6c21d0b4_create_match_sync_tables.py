"""create match sync tables

Revision ID: 3f9a6c21d0b4
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3f9a6c21d0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(  # type: ignore
        'valorant_matches',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('player_key', sa.String(), nullable=False),
        sa.Column('region', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('tag', sa.String(), nullable=False),
        sa.Column('started_at', sa.String(), nullable=True),
        sa.Column('mode', sa.String(), nullable=True),
        sa.Column('map', sa.String(), nullable=True),
        sa.Column('player_kills', sa.Integer(), nullable=True),
        sa.Column('player_deaths', sa.Integer(), nullable=True),
        sa.Column('player_assists', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id', 'player_key'),
    )
    op.create_index('ix_valorant_matches_started_at', 'valorant_matches', ['started_at'])  # type: ignore

    op.create_table(  # type: ignore
        'valorant_player_stats',
        sa.Column('match_id', sa.String(), nullable=False),
        sa.Column('player_key', sa.String(), nullable=False),
        sa.Column('region', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('tag', sa.String(), nullable=False),
        sa.Column('character', sa.String(), nullable=True),
        sa.Column('rank', sa.String(), nullable=True),
        sa.Column('kills', sa.Integer(), nullable=True),
        sa.Column('deaths', sa.Integer(), nullable=True),
        sa.Column('assists', sa.Integer(), nullable=True),
        sa.Column('bodyshots', sa.Integer(), nullable=True),
        sa.Column('headshots', sa.Integer(), nullable=True),
        sa.Column('legshots', sa.Integer(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('spent_overall', sa.Integer(), nullable=True),
        sa.Column('spent_avg', sa.Float(), nullable=True),
        sa.Column('loadout_overall', sa.Integer(), nullable=True),
        sa.Column('loadout_avg', sa.Float(), nullable=True),
        sa.Column('damage_made', sa.Integer(), nullable=True),
        sa.Column('damage_received', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('match_id', 'player_key'),
    )

    op.create_table(  # type: ignore
        'player_cursor',
        sa.Column('pk', sa.String(), primary_key=True, nullable=False),
        sa.Column('last_match_id', sa.String(), nullable=True),
        sa.Column('last_started_at', sa.String(), nullable=True),
    )


def downgrade():
    op.drop_table('player_cursor')  # type: ignore
    op.drop_table('valorant_player_stats')  # type: ignore
    op.drop_index('ix_valorant_matches_started_at', table_name='valorant_matches')  # type: ignore
    op.drop_table('valorant_matches')  # type: ignore
