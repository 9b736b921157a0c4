"""create room, player, round and card tables

Revision ID: 4b7c1d2e9f01
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4b7c1d2e9f01'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'room',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('room_code', sa.String(length=8), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='waiting'),
        sa.Column('max_players', sa.Integer(), nullable=False, server_default='8'),
        sa.Column('rounds_total', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('cards_per_player', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('free_center', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('current_round_number', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('round_start_time', sa.Float(), nullable=True),
        sa.Column('created_at', sa.Float(), nullable=True),
    )
    op.create_index('ix_room_room_code', 'room', ['room_code'], unique=True)

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('room.id'), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('avatar_name', sa.String(length=64), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='player'),
        sa.Column('total_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('joined_at', sa.Float(), nullable=True),
    )
    op.create_index('ix_player_room_id', 'player', ['room_id'])

    op.create_table(
        'round',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('room.id'), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('draw_sequence', sa.Text(), nullable=False),
        sa.Column('current_draw_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('start_time', sa.Float(), nullable=False),
        sa.Column('end_time', sa.Float(), nullable=True),
        sa.UniqueConstraint('room_id', 'round_number', name='uq_round_room_number'),
    )
    op.create_index('ix_round_room_id', 'round', ['room_id'])

    op.create_table(
        'card',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
        sa.Column('round_id', sa.Integer(), sa.ForeignKey('round.id'), nullable=False),
        sa.Column('card_number', sa.Integer(), nullable=False),
        sa.Column('numbers', sa.Text(), nullable=False),
        sa.Column('marked_positions', sa.Text(), nullable=False),
        sa.Column('is_winner', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('points_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('card_hash', sa.String(length=64), nullable=True),
        sa.UniqueConstraint('player_id', 'round_id', 'card_number', name='uq_card_player_round_number'),
    )
    op.create_index('ix_card_player_id', 'card', ['player_id'])
    op.create_index('ix_card_round_id', 'card', ['round_id'])


def downgrade():
    op.drop_index('ix_card_round_id', table_name='card')
    op.drop_index('ix_card_player_id', table_name='card')
    op.drop_table('card')
    op.drop_index('ix_round_room_id', table_name='round')
    op.drop_table('round')
    op.drop_index('ix_player_room_id', table_name='player')
    op.drop_table('player')
    op.drop_index('ix_room_room_code', table_name='room')
    op.drop_table('room')
