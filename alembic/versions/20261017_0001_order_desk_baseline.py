"""order desk baseline

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261017_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(inspector: sa.Inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def _index_exists(inspector: sa.Inspector, table_name: str, index_name: str) -> bool:
    return index_name in {index["name"] for index in inspector.get_indexes(table_name)}


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not _table_exists(inspector, "processed_events"):
        op.create_table(
            "processed_events",
            sa.Column("id", sa.String(length=255), nullable=False),
            _created_at("processed_at"),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "order_number_sequence"):
        op.create_table(
            "order_number_sequence",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
            sqlite_autoincrement=True,
        )

    if not _table_exists(inspector, "orders"):
        op.create_table(
            "orders",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("order_number", sa.String(length=32), nullable=False),
            sa.Column("customer_name", sa.String(length=200), nullable=False),
            sa.Column("customer_email", sa.String(length=320), nullable=False),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("payment_method", sa.String(length=60), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("rating", sa.String(length=1), nullable=True),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
        )
    inspector = sa.inspect(bind)
    if not _index_exists(inspector, "orders", "ix_orders_order_number"):
        op.create_index("ix_orders_order_number", "orders", ["order_number"], unique=True)
    if not _index_exists(inspector, "orders", "ix_orders_created_at"):
        op.create_index("ix_orders_created_at", "orders", ["created_at"], unique=False)

    if not _table_exists(inspector, "custom_orders"):
        op.create_table(
            "custom_orders",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("customer_name", sa.String(length=200), nullable=False),
            sa.Column("customer_email", sa.String(length=320), nullable=False),
            sa.Column("category", sa.String(length=120), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("estimated_price", sa.String(length=32), nullable=False),
            sa.Column("payment_method", sa.String(length=60), nullable=True),
            sa.Column("image_urls", sa.JSON(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
        )
    inspector = sa.inspect(bind)
    if not _index_exists(inspector, "custom_orders", "ix_custom_orders_created_at"):
        op.create_index("ix_custom_orders_created_at", "custom_orders", ["created_at"], unique=False)

    if not _table_exists(inspector, "contact_submissions"):
        op.create_table(
            "contact_submissions",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("subject", sa.String(length=255), nullable=False),
            sa.Column("message", sa.Text(), nullable=False),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
        )
    inspector = sa.inspect(bind)
    if not _index_exists(inspector, "contact_submissions", "ix_contact_submissions_created_at"):
        op.create_index(
            "ix_contact_submissions_created_at",
            "contact_submissions",
            ["created_at"],
            unique=False,
        )

    if not _table_exists(inspector, "cart_items"):
        op.create_table(
            "cart_items",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=120), nullable=False),
            sa.Column("product_name", sa.String(length=200), nullable=True),
            sa.Column("price", sa.String(length=32), nullable=True),
            sa.Column("category", sa.String(length=120), nullable=True),
            sa.Column("image_urls", sa.JSON(), nullable=True),
            sa.Column("quantity", sa.String(length=12), nullable=False, server_default="1"),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
        )
    inspector = sa.inspect(bind)
    if not _index_exists(inspector, "cart_items", "ix_cart_items_product_id"):
        op.create_index("ix_cart_items_product_id", "cart_items", ["product_id"], unique=False)
    if not _index_exists(inspector, "cart_items", "ix_cart_items_created_at"):
        op.create_index("ix_cart_items_created_at", "cart_items", ["created_at"], unique=False)

    if not _table_exists(inspector, "donations"):
        op.create_table(
            "donations",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("donor_name", sa.String(length=200), nullable=False),
            sa.Column("donor_email", sa.String(length=320), nullable=False),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("message", sa.Text(), nullable=True),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
        )
    inspector = sa.inspect(bind)
    if not _index_exists(inspector, "donations", "ix_donations_amount"):
        op.create_index("ix_donations_amount", "donations", ["amount"], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table_name in (
        "donations",
        "cart_items",
        "contact_submissions",
        "custom_orders",
        "orders",
        "order_number_sequence",
        "processed_events",
    ):
        if _table_exists(inspector, table_name):
            op.drop_table(table_name)
