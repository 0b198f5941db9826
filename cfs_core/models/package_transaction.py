"""Package transaction models.

A transaction claims packages of one packing list for one pass through a
business flow. Two partial unique indexes back the service-level checks:

* one ``IN_PROGRESS`` transaction per ``(packing_list_id, business_process_flow)``;
* one active claim per package across every flow.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cfs_core.models.base import Base, TimestampMixin
from cfs_core.models.enums import PartyType, TransactionStatus, enum_column_values
from cfs_core.models.types import GUID, UTCDateTime


class PackageTransaction(TimestampMixin, Base):
    __tablename__ = "package_transactions"
    __table_args__ = (
        UniqueConstraint("code", name="uq_package_transactions_code"),
        Index("ix_package_transactions_packing_list", "packing_list_id"),
        Index(
            "uq_package_transactions_active_flow",
            "packing_list_id",
            "business_process_flow",
            unique=True,
            sqlite_where=text("status = 'IN_PROGRESS'"),
            postgresql_where=text("status = 'IN_PROGRESS'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(length=40), nullable=False)
    packing_list_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("packing_lists.id", ondelete="RESTRICT"),
        nullable=False,
    )
    business_process_flow: Mapped[str] = mapped_column(String(length=64), nullable=False)
    party_name: Mapped[Optional[str]] = mapped_column(String(length=255), nullable=True)
    party_type: Mapped[Optional[PartyType]] = mapped_column(
        SqlEnum(PartyType, name="party_type", native_enum=False, values_callable=enum_column_values),
        nullable=True,
    )
    status: Mapped[TransactionStatus] = mapped_column(
        SqlEnum(TransactionStatus, name="transaction_status", native_enum=False, values_callable=enum_column_values),
        default=TransactionStatus.IN_PROGRESS,
        nullable=False,
    )
    ended_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    packages: Mapped[List["PackageTransactionItem"]] = relationship(
        "PackageTransactionItem",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="PackageTransactionItem.claimed_at",
    )


class PackageTransactionItem(Base):
    """A package claimed by a transaction with its last-observed status."""

    __tablename__ = "package_transaction_items"
    __table_args__ = (
        UniqueConstraint("transaction_id", "package_id", name="uq_package_transaction_items_transaction_package"),
        Index(
            "uq_package_transaction_items_active_package",
            "package_id",
            unique=True,
            sqlite_where=text("active = 1"),
            postgresql_where=text("active"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("package_transactions.id", ondelete="CASCADE"),
        nullable=False,
    )
    package_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("cargo_packages.id", ondelete="RESTRICT"),
        nullable=False,
    )
    position_status: Mapped[Optional[str]] = mapped_column(String(length=32), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    transaction: Mapped["PackageTransaction"] = relationship("PackageTransaction", back_populates="packages")
    package: Mapped["CargoPackage"] = relationship("CargoPackage", lazy="joined")
