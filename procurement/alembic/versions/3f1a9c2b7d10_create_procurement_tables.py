"""create procurement tables

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-10-12
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PO_STATUS = sa.Enum("Draft", "Submitted", "Approved", "Rejected", "Fulfilled", name="po_status")


def upgrade() -> None:
    op.create_table(
        "catalog_items",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("supplier", sa.String(255), nullable=False),
        sa.Column("manufacturer", sa.String(255), nullable=False, server_default=""),
        sa.Column("model", sa.String(255), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("price_usd", sa.Numeric(14, 2), nullable=False),
        sa.Column("lead_time_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("in_stock", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint("price_usd >= 0", name="ck_catalog_price_nonneg"),
        sa.CheckConstraint("lead_time_days >= 0", name="ck_catalog_lead_time_nonneg"),
    )
    op.create_index("ix_catalog_items_supplier", "catalog_items", ["supplier"])

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("po_number", sa.String(64), nullable=False, unique=True),
        sa.Column("supplier", sa.String(255), nullable=False),
        sa.Column("supplier_locked", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("requestor", sa.String(255), nullable=False),
        sa.Column("cost_center", sa.String(100), nullable=False, server_default=""),
        sa.Column("needed_by_date", sa.Date()),
        sa.Column("payment_terms", sa.String(50), nullable=False, server_default="Net 30"),
        sa.Column("current_status", PO_STATUS, nullable=False, server_default="Draft"),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        # Unique, nullable: backstop for idempotent create
        sa.Column("idempotency_key", sa.String(64), unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_amount >= 0", name="ck_po_total_nonneg"),
    )
    op.create_index("ix_purchase_orders_supplier", "purchase_orders", ["supplier"])
    op.create_index("ix_purchase_orders_current_status", "purchase_orders", ["current_status"])

    op.create_table(
        "po_line_items",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "po_id",
            sa.BigInteger(),
            sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("catalog_item_id", sa.String(100), nullable=False),
        sa.Column("supplier", sa.String(255), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("po_id", "catalog_item_id", name="uq_po_line_item"),
        sa.CheckConstraint("quantity >= 1 AND quantity <= 10000", name="ck_po_line_qty_1_10000"),
        sa.CheckConstraint("unit_price >= 0", name="ck_po_line_unit_price_nonneg"),
    )
    op.create_index("ix_po_line_items_po_id", "po_line_items", ["po_id"])

    op.create_table(
        "po_status_history",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "po_id",
            sa.BigInteger(),
            sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", PO_STATUS, nullable=False),
        sa.Column("transitioned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("note", sa.String(1000)),
    )
    op.create_index("ix_po_status_history_po_time", "po_status_history", ["po_id", "transitioned_at"])


def downgrade() -> None:
    op.drop_index("ix_po_status_history_po_time", table_name="po_status_history")
    op.drop_table("po_status_history")
    op.drop_index("ix_po_line_items_po_id", table_name="po_line_items")
    op.drop_table("po_line_items")
    op.drop_index("ix_purchase_orders_current_status", table_name="purchase_orders")
    op.drop_index("ix_purchase_orders_supplier", table_name="purchase_orders")
    op.drop_table("purchase_orders")
    op.drop_index("ix_catalog_items_supplier", table_name="catalog_items")
    op.drop_table("catalog_items")
    PO_STATUS.drop(op.get_bind(), checkfirst=True)
