"""Packing list and cargo package schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cfs_core.models.enums import ConditionStatus, DestuffStatus, RegulatoryStatus


class PackingListCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    hbl_code: Optional[str] = Field(default=None, max_length=64)
    destuff_status: Optional[DestuffStatus] = None
    container_id: Optional[UUID] = None


class PackingListUpdate(BaseModel):
    hbl_code: Optional[str] = Field(default=None, max_length=64)
    destuff_status: Optional[DestuffStatus] = None
    container_id: Optional[UUID] = None


class PackingListResponse(BaseModel):
    id: UUID
    code: str
    hbl_code: Optional[str] = None
    destuff_status: Optional[DestuffStatus] = None
    container_id: Optional[UUID] = None
    number_of_packages: int = 0
    created_at: datetime


class CargoPackageCreate(BaseModel):
    package_no: Optional[str] = Field(default=None, max_length=64)
    position_status: Optional[str] = Field(default=None, max_length=32)
    current_location_ids: List[str] = Field(default_factory=list)
    condition_status: Optional[ConditionStatus] = None
    regulatory_status: Optional[RegulatoryStatus] = None


class CargoPackageBatchCreate(BaseModel):
    packages: List[CargoPackageCreate] = Field(..., min_length=1)


class CargoPackageResponse(BaseModel):
    id: UUID
    packing_list_id: UUID
    package_no: Optional[str] = None
    position_status: Optional[str] = None
    condition_status: Optional[ConditionStatus] = None
    regulatory_status: Optional[RegulatoryStatus] = None
    current_location_ids: List[str] = Field(default_factory=list)
    movement_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CargoPackageListResponse(BaseModel):
    results: List[CargoPackageResponse]
    total: int
