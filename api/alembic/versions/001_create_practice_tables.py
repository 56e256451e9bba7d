"""Create card_pool and goal_state tables

Revision ID: 001_create_practice_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_create_practice_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create per-user card pool and daily goal documents."""
    op.create_table(
        'card_pool',
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('cards', sa.JSON(), nullable=False),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('user_id')
    )
    op.create_table(
        'goal_state',
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('target_goal', sa.Integer(), nullable=False),
        sa.Column('current_progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_progress_date', sa.Date(), nullable=False),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('user_id')
    )


def downgrade() -> None:
    """Drop practice tables."""
    op.drop_table('goal_state')
    op.drop_table('card_pool')
