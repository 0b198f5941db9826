"""Cargo package model; ``position_status`` is the workflow state."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cfs_core.models.base import Base, TimestampMixin
from cfs_core.models.enums import ConditionStatus, RegulatoryStatus, enum_column_values
from cfs_core.models.types import GUID, JSONType, UTCDateTime


class CargoPackage(TimestampMixin, Base):
    __tablename__ = "cargo_packages"
    __table_args__ = (
        Index("ix_cargo_packages_packing_list_status", "packing_list_id", "position_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    packing_list_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("packing_lists.id", ondelete="CASCADE"),
        nullable=False,
    )
    package_no: Mapped[Optional[str]] = mapped_column(String(length=64), nullable=True)
    position_status: Mapped[Optional[str]] = mapped_column(String(length=32), nullable=True)
    condition_status: Mapped[Optional[ConditionStatus]] = mapped_column(
        SqlEnum(ConditionStatus, name="condition_status", native_enum=False, values_callable=enum_column_values),
        nullable=True,
    )
    regulatory_status: Mapped[Optional[RegulatoryStatus]] = mapped_column(
        SqlEnum(RegulatoryStatus, name="regulatory_status", native_enum=False, values_callable=enum_column_values),
        nullable=True,
    )
    current_location_ids: Mapped[List[str]] = mapped_column(JSONType, default=list, nullable=False)
    movement_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    packing_list: Mapped["PackingList"] = relationship("PackingList", back_populates="packages")
