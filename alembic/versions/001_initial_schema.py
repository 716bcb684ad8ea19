"""Initial schema - creates the retail ledger tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

AUDIT_ACTIONS = ('insert', 'update', 'delete')
NOTIFICATION_TYPES = ('promotion', 'order_update', 'system', 'marketing')
ACTIVITY_TYPES = ('view', 'browse', 'search', 'cart_add', 'cart_remove')


def _timestamps(updated: bool = True):
    columns = [sa.Column('created_at', sa.TIMESTAMP(timezone=False), server_default=sa.text('now()'), nullable=False)]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.TIMESTAMP(timezone=False), server_default=sa.text('now()'), nullable=False)
        )
    return columns


def upgrade() -> None:
    # Create custom types/enums
    audit_action = postgresql.ENUM(*AUDIT_ACTIONS, name='audit_action', create_type=False)
    notification_type = postgresql.ENUM(*NOTIFICATION_TYPES, name='notification_type', create_type=False)
    activity_type = postgresql.ENUM(*ACTIVITY_TYPES, name='activity_type', create_type=False)
    for enum_type in (audit_action, notification_type, activity_type):
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'addresses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('street', sa.String(length=255), nullable=False),
        sa.Column('county', sa.String(length=100), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'clients',
        sa.Column('id', sa.String(length=20), primary_key=True),
        sa.Column('full_name', sa.String(length=100), nullable=False),
        sa.Column('contact_number', sa.BigInteger(), nullable=False),
        sa.Column('address_id', sa.Integer(), sa.ForeignKey('addresses.id', ondelete='RESTRICT'), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(length=100), nullable=False),
        sa.Column('address_id', sa.Integer(), sa.ForeignKey('addresses.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('position', sa.String(length=50), nullable=False),
        sa.Column('salary', sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_employees_position', 'employees', ['position'])

    op.create_table(
        'products',
        sa.Column('id', sa.String(length=20), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('buy_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('sell_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('sell_price >= buy_price AND buy_price >= 0', name='chk_prices'),
        sa.CheckConstraint('stock >= 0', name='chk_items'),
    )
    op.create_index('ix_products_category', 'products', ['category'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.String(length=20), sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('client_id', sa.String(length=20), sa.ForeignKey('clients.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        *_timestamps(updated=False),
        sa.CheckConstraint('quantity > 0', name='chk_quantity'),
        sa.CheckConstraint('cost >= 0', name='chk_cost'),
    )
    op.create_index('idx_orders_date', 'orders', ['date'])
    op.create_index('idx_orders_client', 'orders', ['client_id'])
    op.create_index('ix_orders_product_id', 'orders', ['product_id'])
    op.create_index('ix_orders_employee_id', 'orders', ['employee_id'])

    # No foreign key on order_id: delete audits outlive their order
    op.create_table(
        'audit',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('action', audit_action, nullable=False),
        sa.Column('old_values', postgresql.JSONB(), nullable=True),
        sa.Column('new_values', postgresql.JSONB(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index('ix_audit_order_id', 'audit', ['order_id'])
    op.create_index('ix_audit_created_at', 'audit', ['created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.String(length=20), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(updated=False),
        sa.CheckConstraint('client_id IS NOT NULL OR employee_id IS NOT NULL', name='chk_recipient'),
    )
    op.create_index('ix_notifications_client_id', 'notifications', ['client_id'])
    op.create_index('ix_notifications_employee_id', 'notifications', ['employee_id'])
    op.create_index('ix_notifications_type', 'notifications', ['type'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'activity',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.String(length=20), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=True),
        sa.Column('product_id', sa.String(length=20), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=True),
        sa.Column('properties', postgresql.JSONB(), nullable=True),
        sa.Column('activity_type', activity_type, nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index('idx_activity_client', 'activity', ['client_id'])
    op.create_index('idx_activity_created', 'activity', ['created_at'])
    op.create_index('ix_activity_product_id', 'activity', ['product_id'])


def downgrade() -> None:
    for table in ('activity', 'notifications', 'audit', 'orders', 'products', 'employees', 'clients', 'addresses'):
        op.drop_table(table)

    for name in ('activity_type', 'notification_type', 'audit_action'):
        postgresql.ENUM(name=name).drop(op.get_bind(), checkfirst=True)
