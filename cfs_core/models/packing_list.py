"""Packing list model grouping cargo packages for one HBL."""

from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cfs_core.models.base import Base, TimestampMixin
from cfs_core.models.enums import DestuffStatus, enum_column_values
from cfs_core.models.types import GUID


class PackingList(TimestampMixin, Base):
    """Shipment manifest; destuff status gates the delivery flow."""

    __tablename__ = "packing_lists"
    __table_args__ = (
        UniqueConstraint("code", name="uq_packing_lists_code"),
        Index("ix_packing_lists_container", "container_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(length=64), nullable=False)
    hbl_code: Mapped[Optional[str]] = mapped_column(String(length=64), nullable=True)
    destuff_status: Mapped[Optional[DestuffStatus]] = mapped_column(
        SqlEnum(DestuffStatus, name="destuff_status", native_enum=False, values_callable=enum_column_values),
        nullable=True,
    )
    container_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        GUID(),
        ForeignKey("containers.id", ondelete="SET NULL"),
        nullable=True,
    )

    container: Mapped[Optional["Container"]] = relationship("Container", back_populates="packing_lists")
    packages: Mapped[List["CargoPackage"]] = relationship(
        "CargoPackage",
        back_populates="packing_list",
        cascade="all, delete-orphan",
        order_by="CargoPackage.package_no",
    )
