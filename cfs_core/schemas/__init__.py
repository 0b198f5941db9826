"""Pydantic schemas for API payloads."""

from cfs_core.schemas.container import ContainerCreate, ContainerResponse, ContainerSealRequest
from cfs_core.schemas.flow import BusinessFlowStepSchema, FlowConfigResponse, FlowDefinition
from cfs_core.schemas.package_transaction import (
    PackageTransactionCreate,
    PackageTransactionDetailResponse,
    PackageTransactionFilter,
    PackageTransactionListResponse,
    PackageTransactionResponse,
    PackageTransactionUpdate,
    StepExecutionRequest,
    StepExecutionResponse,
)
from cfs_core.schemas.packing_list import (
    CargoPackageBatchCreate,
    CargoPackageCreate,
    CargoPackageListResponse,
    CargoPackageResponse,
    PackingListCreate,
    PackingListResponse,
    PackingListUpdate,
)

__all__ = [
    "BusinessFlowStepSchema",
    "CargoPackageBatchCreate",
    "CargoPackageCreate",
    "CargoPackageListResponse",
    "CargoPackageResponse",
    "ContainerCreate",
    "ContainerResponse",
    "ContainerSealRequest",
    "FlowConfigResponse",
    "FlowDefinition",
    "PackageTransactionCreate",
    "PackageTransactionDetailResponse",
    "PackageTransactionFilter",
    "PackageTransactionListResponse",
    "PackageTransactionResponse",
    "PackageTransactionUpdate",
    "PackingListCreate",
    "PackingListResponse",
    "PackingListUpdate",
    "StepExecutionRequest",
    "StepExecutionResponse",
]
