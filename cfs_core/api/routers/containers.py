"""Container HTTP endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, status

from cfs_core.api.dependencies import get_container_service
from cfs_core.schemas.container import ContainerCreate, ContainerResponse, ContainerSealRequest
from cfs_core.services.containers import ContainerService

router = APIRouter()


@router.post("", response_model=ContainerResponse, status_code=status.HTTP_201_CREATED)
def create_container(
    payload: ContainerCreate,
    service: ContainerService = Depends(get_container_service),
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
) -> ContainerResponse:
    container = service.create(payload, actor_id=x_actor_id)
    return ContainerResponse.model_validate(container)


@router.post("/{container_id}/seal", response_model=ContainerResponse)
def seal_container(
    container_id: UUID,
    payload: ContainerSealRequest,
    service: ContainerService = Depends(get_container_service),
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
) -> ContainerResponse:
    container = service.seal(container_id, payload.seal_number, note=payload.note, actor_id=x_actor_id)
    return ContainerResponse.model_validate(container)
