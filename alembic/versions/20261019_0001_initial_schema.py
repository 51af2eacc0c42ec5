"""Create initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '20261019_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

def _has_table(bind, name: str) -> bool:
    try:
        insp = inspect(bind)
        return insp.has_table(name)
    except Exception:
        return False

def upgrade() -> None:
    bind = op.get_bind()

    roomtype_enum = sa.Enum('Standard Single', 'Standard Double', name='roomtype')
    roomstatus_enum = sa.Enum('vacant', 'occupied', 'maintenance', name='roomstatus')
    residentkind_enum = sa.Enum('primary', 'dependent', name='residentkind')

    # Create users table
    if not _has_table(bind, 'users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('hashed_password', sa.String(length=255), nullable=False),
            sa.Column('role', sa.String(length=20), server_default='viewer', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    # Create rooms table
    if not _has_table(bind, 'rooms'):
        op.create_table('rooms',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('room_number', sa.String(length=20), nullable=False),
            sa.Column('room_type', roomtype_enum, nullable=False),
            sa.Column('capacity', sa.Integer(), nullable=False),
            sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('floor', sa.Integer(), nullable=False),
            sa.Column('status', roomstatus_enum, server_default='vacant', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_rooms_id'), 'rooms', ['id'], unique=False)
        op.create_index(op.f('ix_rooms_room_number'), 'rooms', ['room_number'], unique=True)

    # Create tenants table
    if not _has_table(bind, 'tenants'):
        op.create_table('tenants',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('first_name', sa.String(length=100), nullable=False),
            sa.Column('last_name', sa.String(length=100), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('phone', sa.String(length=50), nullable=True),
            sa.Column('emergency_contact', sa.String(length=200), nullable=True),
            sa.Column('address', sa.Text(), nullable=True),
            sa.Column('residents', residentkind_enum, server_default='primary', nullable=False),
            sa.Column('primary_tenant_id', sa.Integer(), nullable=True),
            sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.Column('contract_ref', sa.String(length=500), nullable=True),
            sa.Column('room_id', sa.Integer(), nullable=True),
            sa.Column('room_number', sa.String(length=20), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['primary_tenant_id'], ['tenants.id'], ),
            sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_tenants_id'), 'tenants', ['id'], unique=False)
        op.create_index(op.f('ix_tenants_primary_tenant_id'), 'tenants', ['primary_tenant_id'], unique=False)

    # Create occupancy table
    if not _has_table(bind, 'occupancy'):
        op.create_table('occupancy',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('tenant_id', sa.Integer(), nullable=False),
            sa.Column('room_id', sa.Integer(), nullable=False),
            sa.Column('check_in_date', sa.Date(), nullable=False),
            sa.Column('is_current', sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
            sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_occupancy_id'), 'occupancy', ['id'], unique=False)
        op.create_index(op.f('ix_occupancy_tenant_id'), 'occupancy', ['tenant_id'], unique=False)
        op.create_index('ix_occupancy_room_current', 'occupancy', ['room_id', 'is_current'], unique=False)
        # one current occupancy per tenant
        op.create_index(
            'uq_occupancy_current_tenant', 'occupancy', ['tenant_id'], unique=True,
            sqlite_where=sa.text('is_current'), postgresql_where=sa.text('is_current'),
        )


def downgrade() -> None:
    bind = op.get_bind()
    dialect_name = bind.dialect.name
    op.drop_table('occupancy')
    op.drop_table('tenants')
    op.drop_table('rooms')
    op.drop_table('users')

    # Drop ENUM types for PostgreSQL
    if dialect_name == 'postgresql':
        sa.Enum(name='residentkind').drop(bind, checkfirst=True)
        sa.Enum(name='roomstatus').drop(bind, checkfirst=True)
        sa.Enum(name='roomtype').drop(bind, checkfirst=True)
