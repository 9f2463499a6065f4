"""initial_schema

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from fastapi_users_db_sqlalchemy.generics import GUID


# revision identifiers, used by Alembic.
revision: str = '20261001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PAYMENT_STATUS = sa.Enum('Pending', 'Completed', 'Failed', 'Cancelled', name='payment_status')
ORDER_STATUS = sa.Enum('Processing', 'Paid', 'Ready', 'On the way', 'Received', 'Failed', name='order_status')
RESERVATION_STATUS = sa.Enum('Pending', 'Confirmed', 'Cancelled', name='reservation_status')


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    # 1. Users (fastapi-users columns + profile)
    op.create_table(
        'users',
        sa.Column('id', GUID(), primary_key=True),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('hashed_password', sa.String(length=1024), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_superuser', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='customer'),
        sa.Column('refresh_token', sa.String(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 2. Addresses
    op.create_table(
        'addresses',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', GUID(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(), nullable=True),
        sa.Column('street', sa.String(), nullable=False),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=False),
        sa.Column('country', sa.String(), nullable=False),
        sa.Column('phone_number', sa.String(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_addresses_user_id', 'addresses', ['user_id'])

    # 3. Catalog
    op.create_table(
        'categories',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=False),
        *timestamps(),
    )
    op.create_table(
        'products',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('ingredients', sa.JSON(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('image_keys', sa.JSON(), nullable=False),
        sa.Column('category_id', sa.String(), sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False),
        *timestamps(),
    )
    op.create_index('idx_products_category', 'products', ['category_id'])

    # 4. Carts
    op.create_table(
        'carts',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('owner_id', GUID(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        *timestamps(),
    )
    op.create_table(
        'cart_items',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('cart_id', sa.String(), sa.ForeignKey('carts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        *timestamps(),
        sa.UniqueConstraint('cart_id', 'product_id', name='uq_cart_item_product'),
        sa.CheckConstraint('quantity >= 1', name='ck_cart_item_quantity_positive'),
    )

    # 5. Orders
    op.create_table(
        'orders',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('buyer_id', GUID(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('address_id', sa.String(), sa.ForeignKey('addresses.id', ondelete='SET NULL'), nullable=True),
        sa.Column('cart_id', sa.String(), sa.ForeignKey('carts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('total_quantity', sa.Integer(), nullable=False),
        sa.Column('payment_status', PAYMENT_STATUS, nullable=False),
        sa.Column('order_status', ORDER_STATUS, nullable=False),
        sa.Column('payment_session_id', sa.String(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        *timestamps(),
        sa.CheckConstraint('total_price > 0', name='ck_order_total_price_positive'),
    )
    op.create_index('idx_orders_buyer', 'orders', ['buyer_id'])
    op.create_index('idx_orders_status', 'orders', ['order_status'])
    op.create_index('ix_orders_payment_session_id', 'orders', ['payment_session_id'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_id', sa.String(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(), sa.ForeignKey('products.id', ondelete='SET NULL'), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_at_time_of_order', sa.Float(), nullable=False),
        sa.Column('item_name', sa.String(), nullable=False),
    )

    # 6. Tables + reservations
    op.create_table(
        'tables',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('number', sa.Integer(), nullable=False, unique=True),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )
    op.create_table(
        'reservations',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', GUID(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('table_id', sa.String(), sa.ForeignKey('tables.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reservation_date', sa.DateTime(), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('status', RESERVATION_STATUS, nullable=False),
        *timestamps(),
    )
    op.create_index('idx_reservations_date', 'reservations', ['reservation_date'])
    # one live booking per table and slot
    op.create_index(
        'uq_reservation_table_slot_active',
        'reservations',
        ['table_id', 'reservation_date'],
        unique=True,
        sqlite_where=sa.text("status != 'Cancelled'"),
        postgresql_where=sa.text("status != 'Cancelled'"),
    )


def downgrade():
    op.drop_index('uq_reservation_table_slot_active', table_name='reservations')
    op.drop_index('idx_reservations_date', table_name='reservations')
    op.drop_table('reservations')
    op.drop_table('tables')
    op.drop_table('order_items')
    op.drop_index('ix_orders_payment_session_id', table_name='orders')
    op.drop_index('idx_orders_status', table_name='orders')
    op.drop_index('idx_orders_buyer', table_name='orders')
    op.drop_table('orders')
    op.drop_table('cart_items')
    op.drop_table('carts')
    op.drop_index('idx_products_category', table_name='products')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_index('ix_addresses_user_id', table_name='addresses')
    op.drop_table('addresses')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (RESERVATION_STATUS, ORDER_STATUS, PAYMENT_STATUS):
        enum_type.drop(bind, checkfirst=True)
