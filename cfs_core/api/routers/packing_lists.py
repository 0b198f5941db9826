"""Packing list HTTP endpoints."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, status

from cfs_core.api.dependencies import get_packing_list_service
from cfs_core.models.packing_list import PackingList
from cfs_core.schemas.packing_list import (
    CargoPackageBatchCreate,
    CargoPackageResponse,
    PackingListCreate,
    PackingListResponse,
    PackingListUpdate,
)
from cfs_core.services.packing_lists import PackingListService

router = APIRouter()


def _to_response(packing_list: PackingList, service: PackingListService) -> PackingListResponse:
    return PackingListResponse(
        id=packing_list.id,
        code=packing_list.code,
        hbl_code=packing_list.hbl_code,
        destuff_status=packing_list.destuff_status,
        container_id=packing_list.container_id,
        number_of_packages=service.count_packages(packing_list.id),
        created_at=packing_list.created_at,
    )


@router.post("", response_model=PackingListResponse, status_code=status.HTTP_201_CREATED)
def create_packing_list(
    payload: PackingListCreate,
    service: PackingListService = Depends(get_packing_list_service),
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
) -> PackingListResponse:
    packing_list = service.create(payload, actor_id=x_actor_id)
    return _to_response(packing_list, service)


@router.get("/{packing_list_id}", response_model=PackingListResponse)
def get_packing_list(
    packing_list_id: UUID,
    service: PackingListService = Depends(get_packing_list_service),
) -> PackingListResponse:
    return _to_response(service.get(packing_list_id), service)


@router.patch("/{packing_list_id}", response_model=PackingListResponse)
def update_packing_list(
    packing_list_id: UUID,
    payload: PackingListUpdate,
    service: PackingListService = Depends(get_packing_list_service),
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
) -> PackingListResponse:
    packing_list = service.update(packing_list_id, payload, actor_id=x_actor_id)
    return _to_response(packing_list, service)


@router.post(
    "/{packing_list_id}/packages",
    response_model=List[CargoPackageResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_packages(
    packing_list_id: UUID,
    payload: CargoPackageBatchCreate,
    service: PackingListService = Depends(get_packing_list_service),
) -> List[CargoPackageResponse]:
    packages = service.add_packages(packing_list_id, payload.packages)
    return [CargoPackageResponse.model_validate(package) for package in packages]
