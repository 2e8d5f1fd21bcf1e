"""normalize_order_statuses

Revision ID: 8c4e71d05b2a
Revises: 3f1c2a9b7d10
Create Date: 2026-09-21 16:40:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8c4e71d05b2a'
down_revision: Union[str, Sequence[str], None] = '3f1c2a9b7d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Labels written by the old storefront and admin screens
LEGACY_STATUSES = {
    'delivering': 'shipped',
    'completed': 'delivered',
    'paid': 'pending',
    'pending_payment': 'pending',
    'accepted': 'well_received',
}


def upgrade() -> None:
    """Rewrite legacy order status labels to their current names."""
    orders = sa.table('orders', sa.column('status', sa.String))
    for legacy, current in LEGACY_STATUSES.items():
        op.execute(
            orders.update()
            .where(orders.c.status == legacy)
            .values(status=current)
        )


def downgrade() -> None:
    """Legacy labels are still readable, so there is nothing to restore."""
    pass
