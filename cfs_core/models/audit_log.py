"""Audit log entries for transaction and container lifecycle actions."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from cfs_core.models.base import Base, TimestampMixin
from cfs_core.models.types import GUID, JSONType, UTCDateTime


class AuditLog(TimestampMixin, Base):
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_action", "action"),
        Index("ix_audit_logs_transaction", "transaction_id"),
        Index("ix_audit_logs_packing_list", "packing_list_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    action: Mapped[str] = mapped_column(String(length=120), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    actor_id: Mapped[str | None] = mapped_column(String(length=128), nullable=True)
    transaction_id: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    packing_list_id: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    container_id: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    details: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
