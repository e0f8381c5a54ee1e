"""quotes baseline

Revision ID: 20261018_0001
Revises: None
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_0001_quotes_baseline"
down_revision = None
branch_labels = None
depends_on = None


QUOTE_STATUSES = ("pending", "quoted", "accepted", "rejected", "cancelled", "expired")


def _enum(*values: str, name: str) -> sa.Enum:
    # Stored as VARCHAR on every dialect; no CHECK constraint so new values
    # don't require table rebuilds on SQLite.
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=False)


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("role", _enum("buyer", "seller", "admin", name="rolename"), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=True),
        sa.Column("price_amount", sa.Float(), nullable=True),
        sa.Column("price_currency", sa.String(length=5), nullable=True),
        sa.Column("company_id", sa.String(length=36), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_sku", "products", ["sku"])
    op.create_index("ix_products_company_id", "products", ["company_id"])
    op.create_index("ix_products_created_by_id", "products", ["created_by_id"])

    op.create_table(
        "product_variants",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("product_id", sa.String(length=36), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_product_variants_product_id", "product_variants", ["product_id"])

    op.create_table(
        "quotes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("product_id", sa.String(length=36), sa.ForeignKey("products.id"), nullable=False),
        sa.Column(
            "variant_id", sa.String(length=36), sa.ForeignKey("product_variants.id"), nullable=True
        ),
        sa.Column("buyer_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "buyer_company_id", sa.String(length=36), sa.ForeignKey("companies.id"), nullable=True
        ),
        sa.Column("seller_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "seller_company_id", sa.String(length=36), sa.ForeignKey("companies.id"), nullable=False
        ),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("target_price", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(length=5), nullable=False),
        sa.Column("requirements", sa.Text(), nullable=False),
        sa.Column("required_by", sa.DateTime(), nullable=True),
        sa.Column("buyer_contact_name", sa.String(length=120), nullable=True),
        sa.Column("buyer_contact_phone", sa.String(length=50), nullable=True),
        sa.Column("buyer_contact_email", sa.String(length=200), nullable=True),
        sa.Column("response_unit_price", sa.Float(), nullable=True),
        sa.Column("response_currency", sa.String(length=5), nullable=True),
        sa.Column("response_min_order_qty", sa.Float(), nullable=True),
        sa.Column("response_lead_time_days", sa.Integer(), nullable=True),
        sa.Column("response_valid_until", sa.DateTime(), nullable=True),
        sa.Column("response_notes", sa.Text(), nullable=True),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        sa.Column("responded_by_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("status", _enum(*QUOTE_STATUSES, name="quotestatus"), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_quotes_product_id", "quotes", ["product_id"])
    op.create_index("ix_quotes_buyer_id", "quotes", ["buyer_id"])
    op.create_index("ix_quotes_seller_id", "quotes", ["seller_id"])
    op.create_index("ix_quotes_status", "quotes", ["status"])
    op.create_index(
        "ix_quotes_buyer_status_updated", "quotes", ["buyer_id", "status", "updated_at"]
    )
    op.create_index(
        "ix_quotes_seller_status_updated", "quotes", ["seller_id", "status", "updated_at"]
    )
    op.create_index(
        "ix_quotes_seller_company_status_updated",
        "quotes",
        ["seller_company_id", "status", "updated_at"],
    )
    op.create_index("ix_quotes_product_created", "quotes", ["product_id", "created_at"])

    op.create_table(
        "quote_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("quote_id", sa.String(length=36), sa.ForeignKey("quotes.id"), nullable=False),
        sa.Column("actor_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("action", sa.String(length=60), nullable=False),
        sa.Column("status_from", _enum(*QUOTE_STATUSES, name="quotestatus"), nullable=True),
        sa.Column("status_to", _enum(*QUOTE_STATUSES, name="quotestatus"), nullable=True),
        sa.Column("note", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_quote_history_quote_id", "quote_history", ["quote_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("topic", sa.String(length=32), nullable=False, server_default="quotes"),
        sa.Column("event_key", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_event_key", "notifications", ["event_key"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("quote_history")
    op.drop_table("quotes")
    op.drop_table("product_variants")
    op.drop_table("products")
    op.drop_table("users")
    op.drop_table("companies")
