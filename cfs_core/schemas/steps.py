"""Step payload schemas, one per executable step code."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cfs_core.models.enums import ConditionStatus, RegulatoryStatus


class StepPayload(BaseModel):
    """Base payload; unknown keys (truck number, attachments, notes) are kept verbatim."""

    model_config = ConfigDict(extra="allow")

    note: Optional[str] = Field(default=None, max_length=1024)


class InspectStepPayload(StepPayload):
    condition_status: Optional[ConditionStatus] = None
    regulatory_status: Optional[RegulatoryStatus] = None


class StoreStepPayload(StepPayload):
    to_location_ids: List[str] = Field(..., min_length=1)

    @field_validator("to_location_ids")
    @classmethod
    def strip_blank_locations(cls, value: List[str]) -> List[str]:
        locations = [location.strip() for location in value if location and location.strip()]
        if not locations:
            raise ValueError("at least one destination location is required")
        return locations
