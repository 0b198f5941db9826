"""Package transaction schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cfs_core.models.enums import PartyType, TransactionStatus


class PackageTransactionCreate(BaseModel):
    packing_list_id: UUID
    business_process_flow: str = Field(..., min_length=1, max_length=64)
    party_name: str = Field(..., max_length=255)
    party_type: PartyType

    @field_validator("party_name")
    @classmethod
    def party_name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("party name is required")
        return value


class PackageTransactionUpdate(BaseModel):
    """Replaces the claimed package set and/or the party details."""

    package_ids: Optional[List[UUID]] = None
    party_name: Optional[str] = Field(default=None, max_length=255)
    party_type: Optional[PartyType] = None


class StepExecutionRequest(BaseModel):
    step: str = Field(..., min_length=1, max_length=32)
    package_ids: List[UUID] = Field(..., min_length=1)
    best_effort: bool = False
    payload: Dict[str, Any] = Field(default_factory=dict)


class PackageFailureResponse(BaseModel):
    package_id: str
    reason: str
    current_status: Optional[str] = None
    expected_status: Optional[str] = None


class AppliedTransitionResponse(BaseModel):
    package_id: UUID
    from_status: Optional[str]
    to_status: Optional[str]
    movement_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StepExecutionResponse(BaseModel):
    transaction_id: UUID
    step: str
    applied: List[AppliedTransitionResponse]
    failures: List[PackageFailureResponse]


class TransactionPackageResponse(BaseModel):
    package_id: UUID
    package_no: Optional[str] = None
    position_status: Optional[str] = None
    active_step: Optional[str] = None


class PackageTransactionResponse(BaseModel):
    id: UUID
    code: str
    packing_list_id: UUID
    business_process_flow: str
    party_name: Optional[str] = None
    party_type: Optional[PartyType] = None
    status: TransactionStatus
    created_at: datetime
    ended_at: Optional[datetime] = None
    packages: List[TransactionPackageResponse] = Field(default_factory=list)


class PackageTransactionDetailResponse(PackageTransactionResponse):
    step_counts: Dict[str, int]
    can_complete: bool
    completion_blocker: Optional[str] = None
    can_delete: bool


class PackageTransactionListResponse(BaseModel):
    results: List[PackageTransactionResponse]
    total: int
    page: int
    page_size: int


class PackageTransactionFilter(BaseModel):
    packing_list_id: Optional[UUID] = None
    business_process_flow: Optional[str] = None
    status: Optional[TransactionStatus] = None
    party_type: Optional[PartyType] = None
    code: Optional[str] = None
    package_ids: List[UUID] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=500)
    order: Literal["asc", "desc"] = "desc"
