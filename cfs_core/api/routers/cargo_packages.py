"""Cargo package queries."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from cfs_core.api.dependencies import get_packing_list_service
from cfs_core.schemas.packing_list import CargoPackageListResponse, CargoPackageResponse
from cfs_core.services.packing_lists import PackingListService

router = APIRouter()


@router.get("", response_model=CargoPackageListResponse)
def fetch_by_status(
    packing_list_id: UUID = Query(...),
    position_status: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=100, ge=1, le=500),
    service: PackingListService = Depends(get_packing_list_service),
) -> CargoPackageListResponse:
    packages, total = service.fetch_by_status(packing_list_id, position_status, page=page, page_size=page_size)
    return CargoPackageListResponse(
        results=[CargoPackageResponse.model_validate(package) for package in packages],
        total=total,
    )
