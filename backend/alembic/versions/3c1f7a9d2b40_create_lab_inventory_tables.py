"""create lab inventory tables

Revision ID: 3c1f7a9d2b40
Revises:
Create Date: 2026-10-18 10:12:41.518204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f7a9d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _item_columns() -> list:
    """Columns shared by the active and deleted item tables."""
    return [
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('min_stock', sa.Integer(), nullable=True),
        sa.Column('expiry_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('lot_number', sa.String(), nullable=True),
        sa.Column('packaging_type', sa.String(), nullable=True),
        sa.Column('code', sa.String(), nullable=True),
        sa.Column('temperature', sa.String(), nullable=True),
        sa.Column('section', sa.String(), nullable=True),
        sa.Column('low_stock_notified', sa.Boolean(), nullable=False),
        sa.Column('expiry_warning_notified', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', sa.JSON(), nullable=True),
        sa.Column('updated_by', sa.JSON(), nullable=True),
    ]


def _item_indexes(table: str) -> None:
    for column in ('id', 'name', 'lot_number', 'code'):
        op.create_index(op.f(f'ix_{table}_{column}'), table, [column], unique=False)


def upgrade() -> None:
    op.create_table(
        'inventory_items',
        *_item_columns(),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_items_quantity_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    _item_indexes('inventory_items')

    op.create_table(
        'deleted_inventory_items',
        *_item_columns(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _item_indexes('deleted_inventory_items')

    op.create_table(
        'inventory_activity_log',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('item_id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('user', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('id', 'item_id', 'timestamp'):
        op.create_index(op.f(f'ix_inventory_activity_log_{column}'), 'inventory_activity_log', [column], unique=False)


def downgrade() -> None:
    op.drop_table('inventory_activity_log')
    op.drop_table('deleted_inventory_items')
    op.drop_table('inventory_items')
