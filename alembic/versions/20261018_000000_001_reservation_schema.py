"""Stores, reservations and the inventory movement ledger.

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:  # type: ignore[type-arg]
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # Create enum types
    op.execute(
        "CREATE TYPE reservation_status AS ENUM "
        "('pending', 'confirmed', 'completed', 'cancelled')"
    )
    op.execute("CREATE TYPE movement_reason AS ENUM ('reserve', 'release', 'adjust')")

    # Create stores table
    op.create_table(
        "stores",
        sa.Column("id", sa.UUID(), nullable=False, server_default=sa.text("uuid_generate_v4()")),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("image_url", sa.String(2048), nullable=True),
        sa.Column("available_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_selling", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("original_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("discounted_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("pickup_window", sa.String(100), nullable=True),
        sa.Column("pickup_timestamp", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_stores")),
        sa.CheckConstraint(
            "available_units >= 0", name=op.f("ck_stores_available_units_non_negative")
        ),
        sa.CheckConstraint("unit_price >= 0", name=op.f("ck_stores_unit_price_non_negative")),
    )
    op.create_index(op.f("ix_stores_owner_id"), "stores", ["owner_id"], unique=False)

    # Create reservations table
    op.create_table(
        "reservations",
        sa.Column("id", sa.UUID(), nullable=False, server_default=sa.text("uuid_generate_v4()")),
        sa.Column("customer_id", sa.String(255), nullable=True),
        sa.Column("store_id", sa.UUID(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column(
            "status",
            postgresql.ENUM(
                "pending",
                "confirmed",
                "completed",
                "cancelled",
                name="reservation_status",
                create_type=False,
            ),
            nullable=False,
            server_default="confirmed",
        ),
        sa.Column("payment_reference", sa.String(255), nullable=False),
        sa.Column("pickup_time", sa.String(100), nullable=True),
        sa.Column("pickup_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("customer_email", sa.String(255), nullable=False, server_default=""),
        sa.Column("customer_phone", sa.String(50), nullable=False, server_default=""),
        sa.Column("guest_token_hash", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_reservations")),
        sa.ForeignKeyConstraint(
            ["store_id"],
            ["stores.id"],
            name=op.f("fk_reservations_store_id_stores"),
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("payment_reference", name=op.f("uq_reservations_payment_reference")),
        sa.CheckConstraint("quantity >= 1", name=op.f("ck_reservations_quantity_positive")),
    )
    op.create_index(
        op.f("ix_reservations_customer_id"), "reservations", ["customer_id"], unique=False
    )
    op.create_index(op.f("ix_reservations_store_id"), "reservations", ["store_id"], unique=False)

    # Create inventory_movements table
    op.create_table(
        "inventory_movements",
        sa.Column("id", sa.UUID(), nullable=False, server_default=sa.text("uuid_generate_v4()")),
        sa.Column("store_id", sa.UUID(), nullable=False),
        sa.Column("reservation_id", sa.UUID(), nullable=True),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column(
            "reason",
            postgresql.ENUM(
                "reserve", "release", "adjust", name="movement_reason", create_type=False
            ),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_inventory_movements")),
    )
    op.create_index(
        op.f("ix_inventory_movements_store_id"), "inventory_movements", ["store_id"], unique=False
    )
    op.create_index(
        op.f("ix_inventory_movements_reservation_id"),
        "inventory_movements",
        ["reservation_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("inventory_movements")
    op.drop_table("reservations")
    op.drop_table("stores")
    op.execute("DROP TYPE IF EXISTS movement_reason")
    op.execute("DROP TYPE IF EXISTS reservation_status")
