"""Container schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cfs_core.models.enums import ContainerStatus


class ContainerCreate(BaseModel):
    number: str = Field(..., min_length=4, max_length=32)
    status: ContainerStatus = ContainerStatus.PLANNED


class ContainerSealRequest(BaseModel):
    seal_number: str = Field(..., max_length=64)
    note: Optional[str] = Field(default=None, max_length=1024)


class ContainerResponse(BaseModel):
    id: UUID
    number: str
    status: ContainerStatus
    seal_number: Optional[str] = None
    sealed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
