"""Create profiles and activities tables

Revision ID: 5f1c2a9d7e30
Revises: 
Create Date: 2026-10-19 10:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5f1c2a9d7e30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'profiles',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('firstname', sa.String(), nullable=False),
        sa.Column('lastname', sa.String(), nullable=False),
        sa.Column('profile_picture_url', sa.String(), nullable=True),
        sa.Column('timezone', sa.String(), nullable=True),
        sa.Column('access_token', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'activities',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('athlete_id', sa.BigInteger(), nullable=False),
        sa.Column('athlete_name', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('activity_type', sa.String(), nullable=True),
        sa.Column('distance', sa.Float(), nullable=False),
        sa.Column('elapsed_time', sa.Integer(), nullable=False),
        sa.Column('elevation_gain', sa.Float(), nullable=True),
        sa.Column('average_heartrate', sa.Float(), nullable=True),
        sa.Column('total_photo_count', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('start_date_local', sa.DateTime(), nullable=True),
        sa.Column('timezone', sa.String(), nullable=True),
        sa.Column(
            'raw_data',
            sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activities_athlete_id', 'activities', ['athlete_id'])
    op.create_index('ix_activities_activity_type', 'activities', ['activity_type'])
    op.create_index('ix_activities_start_date', 'activities', ['start_date'])
    op.create_index('ix_activities_start_date_local', 'activities', ['start_date_local'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_activities_start_date_local', table_name='activities')
    op.drop_index('ix_activities_start_date', table_name='activities')
    op.drop_index('ix_activities_activity_type', table_name='activities')
    op.drop_index('ix_activities_athlete_id', table_name='activities')
    op.drop_table('activities')
    op.drop_table('profiles')
