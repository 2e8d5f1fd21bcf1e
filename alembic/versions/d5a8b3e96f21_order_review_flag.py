"""order_review_flag

Revision ID: d5a8b3e96f21
Revises: 8c4e71d05b2a
Create Date: 2026-10-19 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'd5a8b3e96f21'
down_revision: Union[str, Sequence[str], None] = '8c4e71d05b2a'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Flag paid orders for review; keep order items when a product is deleted."""
    op.add_column(
        'orders',
        sa.Column('needs_review', sa.Boolean(), server_default='false', nullable=False),
    )
    op.add_column('orders', sa.Column('review_note', sa.Text(), nullable=True))

    op.alter_column('order_items', 'product_id', existing_type=sa.Uuid(), nullable=True)
    op.drop_constraint('order_items_product_id_fkey', 'order_items', type_='foreignkey')
    op.create_foreign_key(
        'order_items_product_id_fkey',
        'order_items',
        'products',
        ['product_id'],
        ['id'],
        ondelete='SET NULL',
    )


def downgrade() -> None:
    op.drop_constraint('order_items_product_id_fkey', 'order_items', type_='foreignkey')
    op.create_foreign_key(
        'order_items_product_id_fkey',
        'order_items',
        'products',
        ['product_id'],
        ['id'],
    )
    op.execute(sa.text('DELETE FROM order_items WHERE product_id IS NULL'))
    op.alter_column('order_items', 'product_id', existing_type=sa.Uuid(), nullable=False)

    op.drop_column('orders', 'review_note')
    op.drop_column('orders', 'needs_review')
