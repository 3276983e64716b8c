"""initial storefront schema

Revision ID: 3c9d1e2f4a5b
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from __future__ import annotations

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

from storefront.db.types import GUID

# revision identifiers, used by Alembic.
revision: str = "3c9d1e2f4a5b"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


cartstatus = sa.Enum("active", "converted", name="cartstatus")
orderstatus = sa.Enum("pending", "processing", "shipped", "completed", "cancelled", name="orderstatus")
paymentstatus = sa.Enum("pending", "paid", "failed", "refunded", name="paymentstatus")
paymentmethod = sa.Enum("cod", "bank_transfer", "credit_card", "e_wallet", name="paymentmethod")
movement_type = sa.Enum("receive", "reserve", "release", name="inventory_movement_type")


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_customers_email", "customers", ["email"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "stock_quantity IS NULL OR stock_quantity >= 0", name="ck_products_stock_non_negative"
        ),
    )

    op.create_table(
        "inventory_movements",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("product_id", GUID(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", movement_type, nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_inventory_movements_product_id", "inventory_movements", ["product_id"])
    op.create_index(
        "ix_inventory_movements_product_created", "inventory_movements", ["product_id", "created_at"]
    )

    op.create_table(
        "carts",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("customer_id", GUID(), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", cartstatus, nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("item_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_carts_customer_id_status", "carts", ["customer_id", "status"])
    # Un solo carrito activo por cliente.
    op.create_index(
        "uq_carts_customer_active",
        "carts",
        ["customer_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "cart_items",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("cart_id", GUID(), sa.ForeignKey("carts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", GUID(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("color", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("size", sa.String(length=24), nullable=False, server_default=""),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_at_time", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("cart_id", "product_id", "color", "size", name="uq_cart_items_cart_product_variant"),
    )

    op.create_table(
        "orders",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("customer_id", GUID(), sa.ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("order_code", sa.String(length=40), nullable=False, unique=True),
        sa.Column("status", orderstatus, nullable=False),
        sa.Column("payment_status", paymentstatus, nullable=False),
        sa.Column("payment_method", paymentmethod, nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("shipping_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("shipping_address", sa.JSON(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_orders_customer_created", "orders", ["customer_id", "created_at"])

    op.create_table(
        "order_lines",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("order_id", GUID(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", GUID(), sa.ForeignKey("products.id", ondelete="SET NULL"), nullable=True),
        sa.Column("product_name", sa.String(length=200), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("line_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("color", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("size", sa.String(length=24), nullable=False, server_default=""),
    )
    op.create_index("ix_order_lines_order_id", "order_lines", ["order_id"])

    op.create_table(
        "shops",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("shop_name", sa.String(length=200), nullable=False),
        sa.Column("shop_code", sa.String(length=40), nullable=False, unique=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=False),
        sa.Column("address", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.String(length=512), nullable=True),
        sa.Column("currency_code", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("language", sa.String(length=8), nullable=False, server_default="en"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("shops")
    op.drop_index("ix_order_lines_order_id", table_name="order_lines")
    op.drop_table("order_lines")
    op.drop_index("ix_orders_customer_created", table_name="orders")
    op.drop_table("orders")
    op.drop_table("cart_items")
    op.drop_index("uq_carts_customer_active", table_name="carts")
    op.drop_index("ix_carts_customer_id_status", table_name="carts")
    op.drop_table("carts")
    op.drop_index("ix_inventory_movements_product_created", table_name="inventory_movements")
    op.drop_index("ix_inventory_movements_product_id", table_name="inventory_movements")
    op.drop_table("inventory_movements")
    op.drop_table("products")
    op.drop_index("ix_customers_email", table_name="customers")
    op.drop_table("customers")

    bind = op.get_bind()
    for enum_type in (movement_type, paymentmethod, paymentstatus, orderstatus, cartstatus):
        enum_type.drop(bind, checkfirst=True)
