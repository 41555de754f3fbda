"""Initial schema: orders table.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, tuple[str, ...], None] = None
depends_on: Union[str, tuple[str, ...], None] = None


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("order_id", sa.String(100), nullable=False),
        sa.Column("customer_name", sa.String(200)),
        sa.Column("customer_phone", sa.String(30)),
        sa.Column("transaction_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payment_method", sa.String(50)),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending_verification"),
        sa.Column("gross_amount", sa.BigInteger(), nullable=False, server_default="0", comment="Rupiah"),
        sa.Column("color_pages", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bw_pages", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("copies", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("color_page_range", sa.Text(), nullable=False, server_default="N/A"),
        sa.Column("grayscale_page_range", sa.Text(), nullable=False, server_default="N/A"),
        sa.Column("print_mode", sa.String(20), nullable=False, server_default="color"),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("file_path", sa.Text(), comment="Relative to storage root"),
        sa.Column("proof_path", sa.Text(), comment="Relative to storage root"),
        sa.Column("pickup_location", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("order_id", name="pk_orders"),
    )
    op.create_index("ix_orders_transaction_time", "orders", ["transaction_time"])
    op.create_index("ix_orders_pickup_location", "orders", ["pickup_location"])


def downgrade() -> None:
    op.drop_index("ix_orders_pickup_location", table_name="orders")
    op.drop_index("ix_orders_transaction_time", table_name="orders")
    op.drop_table("orders")
