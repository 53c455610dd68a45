"""Initial schema with all tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Competitions ingested by the batch
    op.create_table(
        'competitions',
        sa.Column('competition_id', sa.Integer(), primary_key=True),
        sa.Column('season', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('round_filter', sa.String(50), nullable=False, server_default='Regular Season'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        'teams',
        sa.Column('team_id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('logo', sa.String(255), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'matches',
        sa.Column('fixture_id', sa.Integer(), primary_key=True),
        sa.Column('competition_id', sa.Integer(), nullable=False),
        sa.Column('season', sa.Integer(), nullable=False),
        sa.Column('matchday', sa.Integer(), nullable=False),
        sa.Column('home_team_id', sa.Integer(), sa.ForeignKey('teams.team_id'), nullable=False),
        sa.Column('away_team_id', sa.Integer(), sa.ForeignKey('teams.team_id'), nullable=False),
        sa.Column('kickoff', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('status_code', sa.String(10), nullable=True),
        sa.Column('home_goals', sa.Integer(), nullable=True),
        sa.Column('away_goals', sa.Integer(), nullable=True),
        sa.Column('result', sa.String(10), nullable=False, server_default='unknown'),
        sa.Column('odds_home', sa.Numeric(8, 3), nullable=True),
        sa.Column('odds_draw', sa.Numeric(8, 3), nullable=True),
        sa.Column('odds_away', sa.Numeric(8, 3), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_matches_competition', 'matches', ['competition_id', 'season', 'matchday'])
    op.create_index('idx_matches_kickoff', 'matches', ['kickoff'])

    op.create_table(
        'users',
        sa.Column('username', sa.String(50), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('telegram_chat_id', sa.String(50), nullable=True),
    )

    op.create_table(
        'leagues',
        sa.Column('league_id', sa.String(50), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('competition_id', sa.Integer(), nullable=False),
        sa.Column('season', sa.Integer(), nullable=False),
        sa.Column('secret_mode_fraction', sa.Numeric(4, 3), nullable=False, server_default='0.9'),
    )

    op.create_table(
        'league_members',
        sa.Column('league_id', sa.String(50), sa.ForeignKey('leagues.league_id'), primary_key=True),
        sa.Column('username', sa.String(50), sa.ForeignKey('users.username'), primary_key=True),
    )

    op.create_table(
        'bets',
        sa.Column('bet_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(50), sa.ForeignKey('users.username'), nullable=False),
        sa.Column('fixture_id', sa.Integer(), sa.ForeignKey('matches.fixture_id'), nullable=False),
        sa.Column('prediction', sa.String(10), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('username', 'fixture_id', name='uq_bets_user_fixture'),
    )

    # Derived tables, rebuilt by the batch
    op.create_table(
        'fairplay',
        sa.Column('fixture_id', sa.Integer(), sa.ForeignKey('matches.fixture_id'), primary_key=True),
        sa.Column('league_id', sa.String(50), sa.ForeignKey('leagues.league_id'), primary_key=True),
    )

    op.create_table(
        'scores',
        sa.Column('username', sa.String(50), sa.ForeignKey('users.username'), primary_key=True),
        sa.Column('league_id', sa.String(50), sa.ForeignKey('leagues.league_id'), primary_key=True),
        sa.Column('score', sa.Numeric(10, 3), nullable=False, server_default='0'),
        sa.Column('correct_bets', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('final_balance', sa.Numeric(10, 3), nullable=False, server_default='0'),
        sa.Column('computed_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_scores_league_rank', 'scores', ['league_id', 'score', 'correct_bets'])

    op.create_table(
        'notification_tokens',
        sa.Column('token', sa.String(64), primary_key=True),
        sa.Column('username', sa.String(50), sa.ForeignKey('users.username'), nullable=False),
        sa.Column('fixture_id', sa.Integer(), sa.ForeignKey('matches.fixture_id'), nullable=False),
        sa.Column('outcome', sa.String(10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table('notification_tokens')
    op.drop_index('idx_scores_league_rank', 'scores')
    op.drop_table('scores')
    op.drop_table('fairplay')
    op.drop_table('bets')
    op.drop_table('league_members')
    op.drop_table('leagues')
    op.drop_table('users')
    op.drop_index('idx_matches_kickoff', 'matches')
    op.drop_index('idx_matches_competition', 'matches')
    op.drop_table('matches')
    op.drop_table('teams')
    op.drop_table('competitions')
