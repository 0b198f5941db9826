"""Package transaction HTTP endpoints."""

from __future__ import annotations

from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Response, status

from cfs_core.api.dependencies import get_transaction_service, get_workflow_engine
from cfs_core.models.enums import PartyType, TransactionStatus
from cfs_core.models.package_transaction import PackageTransaction
from cfs_core.schemas.package_transaction import (
    AppliedTransitionResponse,
    PackageFailureResponse,
    PackageTransactionCreate,
    PackageTransactionDetailResponse,
    PackageTransactionFilter,
    PackageTransactionListResponse,
    PackageTransactionResponse,
    PackageTransactionUpdate,
    StepExecutionRequest,
    StepExecutionResponse,
    TransactionPackageResponse,
)
from cfs_core.services.transactions import PackageTransactionService
from cfs_core.workflow_engine import WorkflowEngine

router = APIRouter()


def _summary(transaction: PackageTransaction) -> PackageTransactionResponse:
    return PackageTransactionResponse(
        id=transaction.id,
        code=transaction.code,
        packing_list_id=transaction.packing_list_id,
        business_process_flow=transaction.business_process_flow,
        party_name=transaction.party_name,
        party_type=transaction.party_type,
        status=transaction.status,
        created_at=transaction.created_at,
        ended_at=transaction.ended_at,
        packages=[
            TransactionPackageResponse(
                package_id=item.package_id,
                package_no=item.package.package_no if item.package is not None else None,
                position_status=item.position_status,
            )
            for item in transaction.packages
        ],
    )


def _detail(transaction: PackageTransaction, service: PackageTransactionService) -> PackageTransactionDetailResponse:
    progress = service.progress(transaction)
    return PackageTransactionDetailResponse(
        **_summary(transaction).model_dump(exclude={"packages"}),
        packages=[
            TransactionPackageResponse(
                package_id=package.package_id,
                package_no=package.package_no,
                position_status=package.position_status,
                active_step=package.active_step,
            )
            for package in progress.packages
        ],
        step_counts=progress.step_counts,
        can_complete=progress.can_complete,
        completion_blocker=progress.completion_blocker,
        can_delete=progress.can_delete,
    )


@router.post("", response_model=PackageTransactionDetailResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: PackageTransactionCreate,
    service: PackageTransactionService = Depends(get_transaction_service),
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
) -> PackageTransactionDetailResponse:
    transaction = service.create(payload, actor_id=x_actor_id)
    return _detail(transaction, service)


@router.get("", response_model=PackageTransactionListResponse)
def list_transactions(
    packing_list_id: Optional[UUID] = Query(default=None),
    business_process_flow: Optional[str] = Query(default=None),
    transaction_status: Optional[TransactionStatus] = Query(default=None, alias="status"),
    party_type: Optional[PartyType] = Query(default=None),
    code: Optional[str] = Query(default=None),
    package_ids: Optional[List[UUID]] = Query(default=None, alias="package_id"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
    order: Literal["asc", "desc"] = Query(default="desc"),
    service: PackageTransactionService = Depends(get_transaction_service),
) -> PackageTransactionListResponse:
    filters = PackageTransactionFilter(
        packing_list_id=packing_list_id,
        business_process_flow=business_process_flow,
        status=transaction_status,
        party_type=party_type,
        code=code,
        package_ids=package_ids or [],
        page=page,
        page_size=page_size,
        order=order,
    )
    transactions, total = service.list(filters)
    return PackageTransactionListResponse(
        results=[_summary(transaction) for transaction in transactions],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{transaction_id}", response_model=PackageTransactionDetailResponse)
def get_transaction(
    transaction_id: UUID,
    service: PackageTransactionService = Depends(get_transaction_service),
) -> PackageTransactionDetailResponse:
    return _detail(service.get(transaction_id), service)


@router.patch("/{transaction_id}", response_model=PackageTransactionDetailResponse)
def update_transaction(
    transaction_id: UUID,
    payload: PackageTransactionUpdate,
    service: PackageTransactionService = Depends(get_transaction_service),
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
) -> PackageTransactionDetailResponse:
    transaction = service.update_claim(transaction_id, payload, actor_id=x_actor_id)
    return _detail(transaction, service)


@router.post("/{transaction_id}/handle-step", response_model=StepExecutionResponse)
def handle_step(
    transaction_id: UUID,
    payload: StepExecutionRequest,
    engine: WorkflowEngine = Depends(get_workflow_engine),
) -> StepExecutionResponse:
    result = engine.execute_step(
        transaction_id,
        payload.step,
        payload.package_ids,
        payload.payload,
        best_effort=payload.best_effort,
    )
    return StepExecutionResponse(
        transaction_id=result.transaction_id,
        step=result.step,
        applied=[AppliedTransitionResponse.model_validate(transition) for transition in result.applied],
        failures=[PackageFailureResponse(**failure.as_dict()) for failure in result.failures],
    )


@router.patch("/{transaction_id}/complete", response_model=PackageTransactionDetailResponse)
def complete_transaction(
    transaction_id: UUID,
    service: PackageTransactionService = Depends(get_transaction_service),
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
) -> PackageTransactionDetailResponse:
    transaction = service.complete(transaction_id, actor_id=x_actor_id)
    return _detail(transaction, service)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_transaction(
    transaction_id: UUID,
    service: PackageTransactionService = Depends(get_transaction_service),
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
) -> Response:
    service.delete(transaction_id, actor_id=x_actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
