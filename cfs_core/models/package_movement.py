"""History of applied package transitions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from cfs_core.models.base import Base
from cfs_core.models.types import GUID, JSONType, UTCDateTime


class PackageMovement(Base):
    """One row per package per executed step, carrying the opaque step payload."""

    __tablename__ = "package_movements"
    __table_args__ = (
        Index("ix_package_movements_package", "package_id"),
        Index("ix_package_movements_transaction", "transaction_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    package_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("cargo_packages.id", ondelete="CASCADE"),
        nullable=False,
    )
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("package_transactions.id", ondelete="CASCADE"),
        nullable=False,
    )
    step_code: Mapped[str] = mapped_column(String(length=32), nullable=False)
    from_status: Mapped[Optional[str]] = mapped_column(String(length=32), nullable=True)
    to_status: Mapped[Optional[str]] = mapped_column(String(length=32), nullable=True)
    payload: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    moved_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
