"""create user, question, multiplayer_room and room_participant tables

Revision ID: 4c7e91a0b2d3
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7e91a0b2d3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('display_name', sa.String(length=64), nullable=False),
        sa.Column('coins', sa.Integer(), nullable=True),
        sa.Column('total_score', sa.Integer(), nullable=True),
        sa.Column('games_played', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'question',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('option_a', sa.Text(), nullable=False),
        sa.Column('option_b', sa.Text(), nullable=False),
        sa.Column('option_c', sa.Text(), nullable=False),
        sa.Column('option_d', sa.Text(), nullable=False),
        sa.Column('correct_answer', sa.String(length=1), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('difficulty', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_question_category', 'question', ['category'])
    op.create_table(
        'multiplayer_room',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('host_id', sa.String(length=36), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('max_players', sa.Integer(), nullable=True),
        sa.Column('current_players', sa.Integer(), nullable=True),
        sa.Column('game_mode', sa.String(length=32), nullable=True),
        sa.Column('category', sa.String(length=32), nullable=True),
        sa.Column('time_per_question', sa.Integer(), nullable=True),
        sa.Column('is_private', sa.Boolean(), nullable=True),
        sa.Column('password_hash', sa.String(length=128), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('is_started', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_multiplayer_room_is_active', 'multiplayer_room', ['is_active'])
    op.create_table(
        'room_participant',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('room_id', sa.String(length=36), sa.ForeignKey('multiplayer_room.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('is_ready', sa.Boolean(), nullable=True),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('room_id', 'user_id', name='uq_room_participant'),
    )
    op.create_index('ix_room_participant_room_id', 'room_participant', ['room_id'])


def downgrade():
    op.drop_index('ix_room_participant_room_id', table_name='room_participant')
    op.drop_table('room_participant')
    op.drop_index('ix_multiplayer_room_is_active', table_name='multiplayer_room')
    op.drop_table('multiplayer_room')
    op.drop_index('ix_question_category', table_name='question')
    op.drop_table('question')
    op.drop_table('user')
