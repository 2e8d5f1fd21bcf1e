"""initial_store_schema

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-09-14 10:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


payment_method_enum = sa.Enum(
    'cash_on_delivery', 'bank_transfer', 'card', name='payment_method_enum'
)
profile_role_enum = sa.Enum('customer', 'admin', name='profile_role_enum')
notification_category_enum = sa.Enum(
    'promo', 'update', 'order', 'system', name='notification_category_enum'
)
audit_entity_type_enum = sa.Enum(
    'product', 'order', 'notification', name='store_audit_entity_type_enum'
)


def upgrade() -> None:
    """Upgrade schema - Create store tables."""

    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=True),
        sa.Column('mood', sa.String(50), nullable=True),
        sa.Column('size', sa.String(50), nullable=True),
        sa.Column('is_best_seller', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('image_url', sa.String(1024), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('price >= 0', name='product_price_non_negative'),
        sa.CheckConstraint('stock IS NULL OR stock >= 0', name='product_stock_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )

    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=False),
        sa.Column('address_line1', sa.String(500), nullable=False),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('province', sa.String(100), nullable=False),
        sa.Column('postal_code', sa.String(20), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(32), server_default='pending', nullable=False),
        sa.Column('payment_method', payment_method_enum, nullable=False),
        sa.Column('payment_provider', sa.String(50), nullable=True),
        sa.Column('payment_session_id', sa.String(255), nullable=True),
        sa.Column('client_request_id', sa.String(100), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('total_amount >= 0', name='order_total_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('payment_session_id'),
        sa.UniqueConstraint('user_id', 'client_request_id', name='unique_order_request'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_user_id_status', 'orders', ['user_id', 'status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('line_total', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name='order_item_positive_quantity'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    for table, text_column in (('order_issues', 'description'), ('refund_requests', 'reason')):
        op.create_table(
            table,
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('order_id', sa.Uuid(), nullable=False),
            sa.Column('user_id', sa.String(255), nullable=False),
            sa.Column(text_column, sa.Text(), nullable=False),
            sa.Column('photo_url', sa.String(1024), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index(f'ix_{table}_order_id', table, ['order_id'])

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(255), nullable=False),
        sa.Column('username', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address_line1', sa.String(500), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('province', sa.String(100), nullable=True),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('country', sa.String(100), server_default='Thailand', nullable=False),
        sa.Column('role', profile_role_enum, server_default='customer', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('category', notification_category_enum, server_default='promo', nullable=False),
        sa.Column('is_global', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('user_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'notification_reads',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('notification_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['notification_id'], ['notifications.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('notification_id', 'user_id', name='unique_notification_read'),
    )

    op.create_table(
        'store_audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', audit_entity_type_enum, nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('old_value', sa.JSON(), nullable=True),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('performed_by', sa.String(255), nullable=False),
        sa.Column('performed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_store_audit_logs_entity', 'store_audit_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_store_audit_logs_performed_at', 'store_audit_logs', ['performed_at'])


def downgrade() -> None:
    """Downgrade schema - Drop store tables."""
    op.drop_table('store_audit_logs')
    op.drop_table('notification_reads')
    op.drop_table('notifications')
    op.drop_table('profiles')
    op.drop_table('refund_requests')
    op.drop_table('order_issues')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('products')

    bind = op.get_bind()
    audit_entity_type_enum.drop(bind, checkfirst=True)
    notification_category_enum.drop(bind, checkfirst=True)
    profile_role_enum.drop(bind, checkfirst=True)
    payment_method_enum.drop(bind, checkfirst=True)
