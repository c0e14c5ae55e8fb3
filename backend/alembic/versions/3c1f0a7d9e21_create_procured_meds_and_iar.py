"""create procured_meds and iar

Revision ID: 3c1f0a7d9e21
Revises:
Create Date: 2026-03-02 10:14:51.402118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f0a7d9e21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'procured_meds',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('po_number', sa.String(length=100), nullable=False),
        sa.Column('item_no', sa.Integer(), nullable=False),
        sa.Column('po_date', sa.Date(), nullable=True),
        sa.Column('supplier', sa.String(length=255), nullable=True),
        sa.Column('mode_of_procurement', sa.String(length=255), nullable=True),
        sa.Column('generic_name', sa.String(length=1000), nullable=True),
        sa.Column('brand_name', sa.String(length=255), nullable=True),
        sa.Column('manufacturer', sa.String(length=255), nullable=True),
        sa.Column('acquisition_cost', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('total_cost', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('delivery_status', sa.String(length=100), nullable=True),
        sa.Column('bid_attempt', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('po_number', 'item_no', name='_po_number_item_no_uc'),
    )
    op.create_index(op.f('ix_procured_meds_id'), 'procured_meds', ['id'], unique=False)
    op.create_index(op.f('ix_procured_meds_po_number'), 'procured_meds', ['po_number'], unique=False)

    op.create_table(
        'iar',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('iar_number', sa.String(length=100), nullable=False),
        sa.Column('date_of_inspection', sa.Date(), nullable=False),
        sa.Column('po_number', sa.String(length=100), nullable=False),
        sa.Column('item_number', sa.Integer(), nullable=False),
        sa.Column('inspected_quantity', sa.Integer(), nullable=False),
        sa.Column('requisitioning_office', sa.String(length=255), nullable=True),
        sa.Column('brand', sa.String(length=255), nullable=True),
        sa.Column('manufacturer', sa.String(length=255), nullable=True),
        sa.Column('batch_lot_number', sa.String(length=255), nullable=True),
        sa.Column('expiration_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('iar_number', 'po_number', 'item_number', name='_iar_po_item_uc'),
    )
    op.create_index(op.f('ix_iar_id'), 'iar', ['id'], unique=False)
    op.create_index(op.f('ix_iar_iar_number'), 'iar', ['iar_number'], unique=False)
    op.create_index(op.f('ix_iar_po_number'), 'iar', ['po_number'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_iar_po_number'), table_name='iar')
    op.drop_index(op.f('ix_iar_iar_number'), table_name='iar')
    op.drop_index(op.f('ix_iar_id'), table_name='iar')
    op.drop_table('iar')
    op.drop_index(op.f('ix_procured_meds_po_number'), table_name='procured_meds')
    op.drop_index(op.f('ix_procured_meds_id'), table_name='procured_meds')
    op.drop_table('procured_meds')
