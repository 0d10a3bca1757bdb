"""001 Pricing schema - properties, room types, rate plans, room prices

Revision ID: 001_pricing_schema
Revises:
Create Date: 2026-10-18

room_prices carries UNIQUE(room_type_id, rate_plan_id, date); the catalog
fill path depends on it for insert-only writes (ON CONFLICT DO NOTHING).
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_pricing_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        'room_types',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('property_id', sa.Integer(),
                  sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_room_types_property', 'room_types', ['property_id'])

    op.create_table(
        'rate_plans',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('property_id', sa.Integer(),
                  sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('room_type_id', sa.Integer(),
                  sa.ForeignKey('room_types.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('kind', sa.String(20), nullable=True),
        sa.Column('value', sa.Numeric(10, 4), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('room_type_id', 'code', name='uq_rate_plan_room_code'),
    )
    op.create_index('ix_rate_plans_property_room', 'rate_plans', ['property_id', 'room_type_id'])

    op.create_table(
        'room_prices',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('property_id', sa.Integer(),
                  sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False),
        sa.Column('room_type_id', sa.Integer(),
                  sa.ForeignKey('room_types.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rate_plan_id', sa.Integer(),
                  sa.ForeignKey('rate_plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('room_type_id', 'rate_plan_id', 'date', name='uq_room_price_room_plan_date'),
        sa.CheckConstraint('price >= 0', name='ck_room_price_non_negative'),
    )
    op.create_index('ix_room_prices_property_date', 'room_prices', ['property_id', 'date'])


def downgrade():
    op.drop_index('ix_room_prices_property_date', table_name='room_prices')
    op.drop_table('room_prices')
    op.drop_index('ix_rate_plans_property_room', table_name='rate_plans')
    op.drop_table('rate_plans')
    op.drop_index('ix_room_types_property', table_name='room_types')
    op.drop_table('room_types')
    op.drop_table('properties')
