"""002 Room inventory - per-night rooms open, minimum stay, closed flag

Revision ID: 002_room_inventory
Revises: 001_pricing_schema
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002_room_inventory'
down_revision = '001_pricing_schema'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'room_inventory',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('property_id', sa.Integer(),
                  sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('room_type_id', sa.Integer(),
                  sa.ForeignKey('room_types.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('rooms_open', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stay', sa.Integer(), nullable=True),
        sa.Column('is_closed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('room_type_id', 'date', name='uq_room_inventory_room_date'),
        sa.CheckConstraint('rooms_open >= 0', name='ck_room_inventory_rooms_open'),
    )
    op.create_index('ix_room_inventory_property_date', 'room_inventory', ['property_id', 'date'])


def downgrade():
    op.drop_index('ix_room_inventory_property_date', table_name='room_inventory')
    op.drop_table('room_inventory')
