"""Schema for packing lists, cargo packages, containers and package transactions."""

from __future__ import annotations
from typing import Union, Sequence

from alembic import op
import sqlalchemy as sa
from cfs_core.models.types import GUID, JSONType, UTCDateTime

# revision identifiers, used by Alembic.
revision: str = "0001_package_transactions"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]


def upgrade() -> None:
    """Create the package transaction schema, including the partial unique indexes."""
    container_status_ref = sa.Enum("PLANNED", "STUFFING", "STUFFED", "SEALED", name="container_status", native_enum=False)
    destuff_status_ref = sa.Enum("PENDING", "IN_PROGRESS", "DONE", name="destuff_status", native_enum=False)
    condition_status_ref = sa.Enum(
        "NORMAL", "PACKAGE_DAMAGED", "CARGO_DAMAGED", name="condition_status", native_enum=False
    )
    regulatory_status_ref = sa.Enum("UNINSPECTED", "PASSED", "ON_HOLD", name="regulatory_status", native_enum=False)
    party_type_ref = sa.Enum("FORWARDER", "CONSIGNEE", "SHIPPER", name="party_type", native_enum=False)
    transaction_status_ref = sa.Enum("IN_PROGRESS", "DONE", name="transaction_status", native_enum=False)

    op.create_table(
        "containers",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("number", sa.String(length=32), nullable=False),
        sa.Column("status", container_status_ref, nullable=False),
        sa.Column("seal_number", sa.String(length=64), nullable=True),
        sa.Column("sealed_at", UTCDateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_containers")),
        sa.UniqueConstraint("number", name="uq_containers_number"),
    )

    op.create_table(
        "packing_lists",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("hbl_code", sa.String(length=64), nullable=True),
        sa.Column("destuff_status", destuff_status_ref, nullable=True),
        sa.Column("container_id", GUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["container_id"],
            ["containers.id"],
            name=op.f("fk_packing_lists_container_id_containers"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_packing_lists")),
        sa.UniqueConstraint("code", name="uq_packing_lists_code"),
    )
    op.create_index("ix_packing_lists_container", "packing_lists", ["container_id"], unique=False)

    op.create_table(
        "cargo_packages",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("packing_list_id", GUID(), nullable=False),
        sa.Column("package_no", sa.String(length=64), nullable=True),
        sa.Column("position_status", sa.String(length=32), nullable=True),
        sa.Column("condition_status", condition_status_ref, nullable=True),
        sa.Column("regulatory_status", regulatory_status_ref, nullable=True),
        sa.Column("current_location_ids", JSONType(), nullable=False),
        sa.Column("movement_at", UTCDateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["packing_list_id"],
            ["packing_lists.id"],
            name=op.f("fk_cargo_packages_packing_list_id_packing_lists"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_cargo_packages")),
    )
    op.create_index(
        "ix_cargo_packages_packing_list_status",
        "cargo_packages",
        ["packing_list_id", "position_status"],
        unique=False,
    )

    op.create_table(
        "package_transactions",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("code", sa.String(length=40), nullable=False),
        sa.Column("packing_list_id", GUID(), nullable=False),
        sa.Column("business_process_flow", sa.String(length=64), nullable=False),
        sa.Column("party_name", sa.String(length=255), nullable=True),
        sa.Column("party_type", party_type_ref, nullable=True),
        sa.Column("status", transaction_status_ref, nullable=False),
        sa.Column("ended_at", UTCDateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["packing_list_id"],
            ["packing_lists.id"],
            name=op.f("fk_package_transactions_packing_list_id_packing_lists"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_package_transactions")),
        sa.UniqueConstraint("code", name="uq_package_transactions_code"),
    )
    op.create_index("ix_package_transactions_packing_list", "package_transactions", ["packing_list_id"], unique=False)
    op.create_index(
        "uq_package_transactions_active_flow",
        "package_transactions",
        ["packing_list_id", "business_process_flow"],
        unique=True,
        sqlite_where=sa.text("status = 'IN_PROGRESS'"),
        postgresql_where=sa.text("status = 'IN_PROGRESS'"),
    )

    op.create_table(
        "package_transaction_items",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("transaction_id", GUID(), nullable=False),
        sa.Column("package_id", GUID(), nullable=False),
        sa.Column("position_status", sa.String(length=32), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("claimed_at", UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["transaction_id"],
            ["package_transactions.id"],
            name=op.f("fk_package_transaction_items_transaction_id_package_transactions"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["package_id"],
            ["cargo_packages.id"],
            name=op.f("fk_package_transaction_items_package_id_cargo_packages"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_package_transaction_items")),
        sa.UniqueConstraint(
            "transaction_id",
            "package_id",
            name="uq_package_transaction_items_transaction_package",
        ),
    )
    op.create_index(
        "uq_package_transaction_items_active_package",
        "package_transaction_items",
        ["package_id"],
        unique=True,
        sqlite_where=sa.text("active = 1"),
        postgresql_where=sa.text("active"),
    )

    op.create_table(
        "package_movements",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("package_id", GUID(), nullable=False),
        sa.Column("transaction_id", GUID(), nullable=False),
        sa.Column("step_code", sa.String(length=32), nullable=False),
        sa.Column("from_status", sa.String(length=32), nullable=True),
        sa.Column("to_status", sa.String(length=32), nullable=True),
        sa.Column("payload", JSONType(), nullable=False),
        sa.Column("moved_at", UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["package_id"],
            ["cargo_packages.id"],
            name=op.f("fk_package_movements_package_id_cargo_packages"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["transaction_id"],
            ["package_transactions.id"],
            name=op.f("fk_package_movements_transaction_id_package_transactions"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_package_movements")),
    )
    op.create_index("ix_package_movements_package", "package_movements", ["package_id"], unique=False)
    op.create_index("ix_package_movements_transaction", "package_movements", ["transaction_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("occurred_at", UTCDateTime(), nullable=False),
        sa.Column("actor_id", sa.String(length=128), nullable=True),
        sa.Column("transaction_id", GUID(), nullable=True),
        sa.Column("packing_list_id", GUID(), nullable=True),
        sa.Column("container_id", GUID(), nullable=True),
        sa.Column("details", JSONType(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_audit_logs")),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_transaction", "audit_logs", ["transaction_id"], unique=False)
    op.create_index("ix_audit_logs_packing_list", "audit_logs", ["packing_list_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_packing_list", table_name="audit_logs")
    op.drop_index("ix_audit_logs_transaction", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_package_movements_transaction", table_name="package_movements")
    op.drop_index("ix_package_movements_package", table_name="package_movements")
    op.drop_table("package_movements")
    op.drop_index("uq_package_transaction_items_active_package", table_name="package_transaction_items")
    op.drop_table("package_transaction_items")
    op.drop_index("uq_package_transactions_active_flow", table_name="package_transactions")
    op.drop_index("ix_package_transactions_packing_list", table_name="package_transactions")
    op.drop_table("package_transactions")
    op.drop_index("ix_cargo_packages_packing_list_status", table_name="cargo_packages")
    op.drop_table("cargo_packages")
    op.drop_index("ix_packing_lists_container", table_name="packing_lists")
    op.drop_table("packing_lists")
    op.drop_table("containers")
