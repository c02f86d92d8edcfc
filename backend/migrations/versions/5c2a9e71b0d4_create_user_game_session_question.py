"""create user, game_session and question tables

Revision ID: 5c2a9e71b0d4
Revises:
Create Date: 2026-10-19 10:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9e71b0d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=30), nullable=False),
        sa.Column('pfp_url', sa.String(length=512), nullable=True),
        sa.Column('team_name', sa.String(length=64), nullable=True),
        sa.Column('team_color', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('last_active_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'game_session',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=30), nullable=False),
        sa.Column('pfp_url', sa.String(length=512), nullable=True),
        sa.Column('team_name', sa.String(length=64), nullable=True),
        sa.Column('team_color', sa.String(length=32), nullable=True),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('question_number', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('failed', sa.Boolean(), nullable=False),
        sa.Column('walked_away', sa.Boolean(), nullable=False),
        sa.Column('time_up', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_session_user_id', 'game_session', ['user_id'])
    op.create_index('ix_game_session_status', 'game_session', ['status'])
    op.create_index('ix_game_session_ended_at', 'game_session', ['ended_at'])
    # One live session per user
    op.create_index(
        'uq_game_session_user_in_progress',
        'game_session',
        ['user_id'],
        unique=True,
        sqlite_where=sa.text("status = 'in_progress'"),
        postgresql_where=sa.text("status = 'in_progress'"),
    )

    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('correct_answer', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('question'),
    )


def downgrade():
    op.drop_table('question')
    op.drop_index('uq_game_session_user_in_progress', table_name='game_session')
    op.drop_index('ix_game_session_ended_at', table_name='game_session')
    op.drop_index('ix_game_session_status', table_name='game_session')
    op.drop_index('ix_game_session_user_id', table_name='game_session')
    op.drop_table('game_session')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
