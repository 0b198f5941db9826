"""Business flow lookup endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cfs_core.api.dependencies import get_registry
from cfs_core.schemas.flow import BusinessFlowStepSchema, FlowConfigResponse
from cfs_core.workflow_engine.registry import FlowRegistry
from cfs_core.workflow_engine.steps import EXECUTABLE_STEPS

router = APIRouter()


@router.get("/{flow_name}", response_model=FlowConfigResponse)
def get_flow(flow_name: str, registry: FlowRegistry = Depends(get_registry)) -> FlowConfigResponse:
    flow = registry.get_flow_config(flow_name)
    return FlowConfigResponse(
        name=flow.name,
        direction=flow.direction,
        steps=[
            BusinessFlowStepSchema(code=step.code, from_status=step.from_status, to_status=step.to_status)
            for step in flow.steps
        ],
        executable_steps=[step.code for step in flow.steps if step.code in EXECUTABLE_STEPS],
    )
