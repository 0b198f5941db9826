"""Tagged dispatch over the step codes the engine knows how to execute."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

from pydantic import ValidationError as PydanticValidationError

from cfs_core.models.cargo_package import CargoPackage
from cfs_core.schemas.steps import InspectStepPayload, StepPayload, StoreStepPayload
from cfs_core.services.errors import StepNotImplementedError, ValidationError
from cfs_core.workflow_engine.registry import BusinessFlowStep, FlowConfig

PackageEffect = Callable[[CargoPackage, Any], None]


def _no_effect(package: CargoPackage, payload: StepPayload) -> None:
    return None


def _record_inspection(package: CargoPackage, payload: InspectStepPayload) -> None:
    if payload.condition_status is not None:
        package.condition_status = payload.condition_status
    if payload.regulatory_status is not None:
        package.regulatory_status = payload.regulatory_status


def _assign_locations(package: CargoPackage, payload: StoreStepPayload) -> None:
    package.current_location_ids = list(payload.to_location_ids)


def _release_locations(package: CargoPackage, payload: StepPayload) -> None:
    package.current_location_ids = []


@dataclass(frozen=True)
class StepHandler:
    code: str
    payload_model: Type[StepPayload]
    apply: PackageEffect

    def parse_payload(self, raw: Optional[Mapping[str, Any]]) -> StepPayload:
        try:
            return self.payload_model.model_validate(dict(raw or {}))
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid payload for step '{self.code}': {exc.errors(include_url=False)}") from exc


STEP_HANDLERS: Dict[str, StepHandler] = {
    "select": StepHandler("select", StepPayload, _no_effect),
    "inspect": StepHandler("inspect", InspectStepPayload, _record_inspection),
    "store": StepHandler("store", StoreStepPayload, _assign_locations),
    "handover": StepHandler("handover", StepPayload, _release_locations),
    "stuffing": StepHandler("stuffing", StepPayload, _release_locations),
}

EXECUTABLE_STEPS = frozenset(STEP_HANDLERS)


def entry_step(flow: FlowConfig) -> Optional[BusinessFlowStep]:
    """First step of ``flow`` the engine can execute; packages join the flow at its ``from_status``."""

    return next((step for step in flow.steps if step.code in STEP_HANDLERS), None)


def resolve_step(flow: FlowConfig, step_code: str) -> Tuple[BusinessFlowStep, StepHandler]:
    """Find ``step_code`` in ``flow`` and the handler that executes it."""

    step = flow.step(step_code)
    if step is None:
        raise ValidationError(f"Step '{step_code}' is not part of flow '{flow.name}'")
    handler = STEP_HANDLERS.get(step_code)
    if handler is None:
        raise StepNotImplementedError(step_code)
    return step, handler
