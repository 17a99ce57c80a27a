"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ORDER_STATUSES = ('PENDING', 'PROCESSING', 'SHIPPED', 'DELIVERED', 'CANCELLED', 'REFUNDED')
SHIPPING_CARRIERS = ('USPS', 'UPS', 'FEDEX', 'DHL', 'OTHER')


def _timestamp(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, **kwargs)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        _timestamp('created_at'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'categories',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
    )
    op.create_index('ix_categories_slug', 'categories', ['slug'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer(), server_default='0', nullable=False),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('category_id', sa.String(), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('discount_percent', sa.Integer(), nullable=True),
        _timestamp('created_at'),
    )
    op.create_index('ix_products_slug', 'products', ['slug'], unique=True)
    op.create_index('ix_products_category_id', 'products', ['category_id'])

    op.create_table(
        'product_images',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('product_id', sa.String(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('alt', sa.String(), nullable=True),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        _timestamp('created_at'),
    )
    op.create_index('ix_product_images_product_id', 'product_images', ['product_id'])

    for table, constraint, extra in (
        ('cart_items', '_user_cart_product_uc', [
            sa.Column('quantity', sa.Integer(), nullable=False),
            _timestamp('created_at'),
            _timestamp('updated_at'),
        ]),
        ('favorites', '_user_favorite_product_uc', [_timestamp('created_at')]),
        ('recently_viewed', '_user_viewed_product_uc', [_timestamp('viewed_at')]),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('product_id', sa.String(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
            *extra,
            sa.UniqueConstraint('user_id', 'product_id', name=constraint),
        )
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])
    op.create_index('ix_recently_viewed_viewed_at', 'recently_viewed', ['viewed_at'])

    op.create_table(
        'orders',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_guest', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('guest_token', sa.String(), nullable=True),
        sa.Column('customer_email', sa.String(), nullable=False),
        sa.Column('customer_name', sa.String(), nullable=True),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.Enum(*ORDER_STATUSES, name='order_status'), nullable=False),
        sa.Column('stripe_session_id', sa.String(), nullable=True, unique=True),
        sa.Column('stripe_payment_intent', sa.String(), nullable=True, unique=True),
        sa.Column('shipping_address', sa.JSON(), nullable=True),
        sa.Column('tracking_number', sa.String(), nullable=True),
        sa.Column('shipping_carrier', sa.Enum(*SHIPPING_CARRIERS, name='shipping_carrier'), nullable=True),
        sa.Column('shipped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint('user_id IS NOT NULL OR guest_token IS NOT NULL', name='ck_order_has_owner'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_guest_token', 'orders', ['guest_token'], unique=True)
    op.create_index('ix_orders_customer_email', 'orders', ['customer_email'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_id', sa.String(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(), sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(), nullable=True),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

    op.create_table(
        'sales',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('tagline', sa.String(), nullable=True),
        sa.Column('discount', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('banner_url', sa.String(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )

    op.create_table(
        'sale_categories',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('sale_id', sa.String(), sa.ForeignKey('sales.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', sa.String(), sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('sale_id', 'category_id', name='_sale_category_uc'),
    )
    op.create_index('ix_sale_categories_sale_id', 'sale_categories', ['sale_id'])
    op.create_index('ix_sale_categories_category_id', 'sale_categories', ['category_id'])


def downgrade() -> None:
    for table in (
        'sale_categories', 'sales', 'order_items', 'orders',
        'recently_viewed', 'favorites', 'cart_items',
        'product_images', 'products', 'categories', 'users',
    ):
        op.drop_table(table)
    sa.Enum(name='shipping_carrier').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='order_status').drop(op.get_bind(), checkfirst=True)
