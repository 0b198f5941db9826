"""Container model; the unit a stuffing flow loads and seals."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cfs_core.models.base import Base, TimestampMixin
from cfs_core.models.enums import ContainerStatus, enum_column_values
from cfs_core.models.types import GUID, UTCDateTime


class Container(TimestampMixin, Base):
    __tablename__ = "containers"
    __table_args__ = (UniqueConstraint("number", name="uq_containers_number"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    number: Mapped[str] = mapped_column(String(length=32), nullable=False)
    status: Mapped[ContainerStatus] = mapped_column(
        SqlEnum(ContainerStatus, name="container_status", native_enum=False, values_callable=enum_column_values),
        default=ContainerStatus.PLANNED,
        nullable=False,
    )
    seal_number: Mapped[Optional[str]] = mapped_column(String(length=64), nullable=True)
    sealed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    packing_lists: Mapped[List["PackingList"]] = relationship("PackingList", back_populates="container")
