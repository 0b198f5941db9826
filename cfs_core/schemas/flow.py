"""Business flow schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

FlowDirection = Literal["import", "export"]


class BusinessFlowStepSchema(BaseModel):
    """One edge of a flow. Accepts the upstream camelCase keys as well."""

    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(..., min_length=1, max_length=32)
    from_status: Optional[str] = Field(
        default=None,
        max_length=32,
        validation_alias=AliasChoices("from_status", "fromStatus"),
    )
    to_status: Optional[str] = Field(
        default=None,
        max_length=32,
        validation_alias=AliasChoices("to_status", "toStatus"),
    )


class FlowDefinition(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    direction: FlowDirection
    steps: List[BusinessFlowStepSchema] = Field(default_factory=list)


class FlowConfigResponse(FlowDefinition):
    executable_steps: List[str] = Field(default_factory=list)
