"""order lifecycle baseline: buyers, sellers, catalog, orders, transitions

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19 10:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a1c2e3f4b5d6"
down_revision = None
branch_labels = None
depends_on = None


def _create_indexes(table_name: str, indexes) -> None:
    insp = sa.inspect(op.get_bind())
    existing = {str(idx.get("name") or "") for idx in insp.get_indexes(table_name)}
    for name, columns, unique in indexes:
        if name not in existing:
            op.create_index(name, table_name, columns, unique=unique)


def upgrade() -> None:
    insp = sa.inspect(op.get_bind())

    if not insp.has_table("buyers"):
        op.create_table(
            "buyers",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("uid", sa.String(length=128), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("phone", sa.String(length=32), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes("buyers", (
        ("ix_buyers_uid", ["uid"], True),
        ("ix_buyers_email", ["email"], True),
    ))

    if not insp.has_table("sellers"):
        op.create_table(
            "sellers",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("fullname", sa.String(length=120), nullable=False),
            sa.Column("phone", sa.String(length=32), nullable=False),
            sa.Column("store_name", sa.String(length=160), nullable=False),
            sa.Column("store_address", sa.String(length=255), nullable=True),
            sa.Column("pincode", sa.String(length=12), nullable=False),
            sa.Column("state", sa.String(length=64), nullable=False),
            sa.Column("city", sa.String(length=64), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes("sellers", (
        ("ix_sellers_email", ["email"], True),
        ("ix_sellers_phone", ["phone"], True),
    ))

    if not insp.has_table("products"):
        op.create_table(
            "products",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("seller_id", sa.Integer(), nullable=False),
            sa.Column("product_name", sa.String(length=160), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("category", sa.String(length=32), nullable=False),
            sa.Column("rating", sa.Float(), nullable=False),
            sa.Column("rating_count", sa.Integer(), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["seller_id"], ["sellers.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes("products", (("ix_products_seller_id", ["seller_id"], False),))

    if not insp.has_table("product_varieties"):
        op.create_table(
            "product_varieties",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=120), nullable=False),
            sa.Column("image_url", sa.String(length=1024), nullable=True),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes("product_varieties", (("ix_product_varieties_product_id", ["product_id"], False),))

    if not insp.has_table("product_options"):
        op.create_table(
            "product_options",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("variety_id", sa.Integer(), nullable=False),
            sa.Column("label", sa.String(length=64), nullable=False),
            sa.Column("price", sa.Float(), nullable=False),
            sa.Column("mrp", sa.Float(), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["variety_id"], ["product_varieties.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes("product_options", (("ix_product_options_variety_id", ["variety_id"], False),))

    if not insp.has_table("orders"):
        op.create_table(
            "orders",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("buyer_id", sa.Integer(), nullable=False),
            sa.Column("shipping_label", sa.String(length=64), nullable=False),
            sa.Column("shipping_lane", sa.String(length=255), nullable=False),
            sa.Column("shipping_city", sa.String(length=64), nullable=False),
            sa.Column("shipping_state", sa.String(length=64), nullable=False),
            sa.Column("shipping_pin_code", sa.String(length=12), nullable=False),
            sa.Column("payment_method", sa.String(length=8), nullable=False),
            sa.Column("payment_status", sa.String(length=16), nullable=False),
            sa.Column("total_amount", sa.Float(), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["buyer_id"], ["buyers.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes("orders", (
        ("ix_orders_buyer_id", ["buyer_id"], False),
        ("ix_orders_created_at", ["created_at"], False),
    ))

    if not insp.has_table("order_items"):
        op.create_table(
            "order_items",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("order_id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("seller_id", sa.Integer(), nullable=False),
            sa.Column("variety_id", sa.Integer(), nullable=False),
            sa.Column("option_id", sa.Integer(), nullable=False),
            sa.Column("product_name", sa.String(length=160), nullable=False),
            sa.Column("variety_title", sa.String(length=120), nullable=False),
            sa.Column("option_label", sa.String(length=64), nullable=False),
            sa.Column("price", sa.Float(), nullable=False),
            sa.Column("mrp", sa.Float(), nullable=False),
            sa.Column("image", sa.String(length=1024), nullable=True),
            sa.Column("store_name", sa.String(length=160), nullable=False),
            sa.Column("status", sa.String(length=16), nullable=False),
            sa.Column("cancellation_reason", sa.String(length=500), nullable=True),
            sa.Column("refund_status", sa.String(length=16), nullable=False),
            sa.Column("refund_reason", sa.String(length=500), nullable=True),
            sa.Column("refund_rejection_reason", sa.String(length=500), nullable=True),
            sa.Column("rating", sa.Integer(), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.ForeignKeyConstraint(["seller_id"], ["sellers.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes("order_items", (
        ("ix_order_items_order_id", ["order_id"], False),
        ("ix_order_items_product_id", ["product_id"], False),
        ("ix_order_items_seller_id", ["seller_id"], False),
        ("ix_order_items_status", ["status"], False),
    ))

    if not insp.has_table("order_item_transitions"):
        op.create_table(
            "order_item_transitions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("order_id", sa.Integer(), nullable=False),
            sa.Column("item_id", sa.Integer(), nullable=False),
            sa.Column("field", sa.String(length=32), nullable=False),
            sa.Column("from_value", sa.String(length=32), nullable=False),
            sa.Column("to_value", sa.String(length=32), nullable=False),
            sa.Column("actor_type", sa.String(length=32), nullable=False),
            sa.Column("actor_id", sa.Integer(), nullable=True),
            sa.Column("reason", sa.String(length=500), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes("order_item_transitions", (
        ("ix_order_item_transitions_order_id", ["order_id"], False),
        ("ix_order_item_transitions_item_id", ["item_id"], False),
    ))

    if not insp.has_table("idempotency_keys"):
        op.create_table(
            "idempotency_keys",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("key", sa.String(length=128), nullable=False),
            sa.Column("scope", sa.String(length=128), nullable=False, server_default=""),
            sa.Column("buyer_id", sa.Integer(), nullable=True),
            sa.Column("request_hash", sa.String(length=64), nullable=False),
            sa.Column("response_body_json", sa.Text(), nullable=True),
            sa.Column("response_code", sa.Integer(), nullable=False, server_default="200"),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("scope", "key", name="uq_idempotency_scope_key"),
        )
    _create_indexes("idempotency_keys", (("ix_idempotency_keys_key", ["key"], False),))


def downgrade() -> None:
    insp = sa.inspect(op.get_bind())
    for table_name in (
        "idempotency_keys",
        "order_item_transitions",
        "order_items",
        "orders",
        "product_options",
        "product_varieties",
        "products",
        "sellers",
        "buyers",
    ):
        if insp.has_table(table_name):
            op.drop_table(table_name)
