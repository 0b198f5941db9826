from __future__ import annotations

import pytest

from cfs_core.services.errors import StepNotImplementedError, ValidationError
from cfs_core.workflow_engine.defaults import DEFAULT_FLOW_DEFINITIONS, DESTUFF_WAREHOUSE, WAREHOUSE_DELIVERY
from cfs_core.workflow_engine.engine import active_step_for
from cfs_core.workflow_engine.registry import InMemoryFlowRegistry
from cfs_core.workflow_engine.steps import EXECUTABLE_STEPS, resolve_step


@pytest.fixture()
def registry() -> InMemoryFlowRegistry:
    registry = InMemoryFlowRegistry()
    registry.ensure_default_flows(DEFAULT_FLOW_DEFINITIONS)
    return registry


def test_active_step_follows_position_status(registry: InMemoryFlowRegistry) -> None:
    steps = registry.get_flow_config(WAREHOUSE_DELIVERY).steps

    assert active_step_for("STORED", steps).code == "select"
    assert active_step_for("CHECKOUT", steps).code == "inspect"
    assert active_step_for("CHECKED", steps).code == "handover"
    assert active_step_for("DELIVERED", steps) is None
    assert active_step_for(None, steps) is None


def test_null_status_waits_on_create_step(registry: InMemoryFlowRegistry) -> None:
    steps = registry.get_flow_config(DESTUFF_WAREHOUSE).steps

    assert active_step_for(None, steps).code == "create"
    assert active_step_for("DESTUFFED", steps).code == "store"


def test_resolve_step_dispatch(registry: InMemoryFlowRegistry) -> None:
    delivery = registry.get_flow_config(WAREHOUSE_DELIVERY)
    destuff = registry.get_flow_config(DESTUFF_WAREHOUSE)

    step, handler = resolve_step(delivery, "inspect")
    assert step.to_status == "CHECKED"
    assert handler.code == "inspect"
    assert "create" not in EXECUTABLE_STEPS

    with pytest.raises(StepNotImplementedError):
        resolve_step(destuff, "create")
    with pytest.raises(ValidationError):
        resolve_step(delivery, "store")


def test_step_payload_validation(registry: InMemoryFlowRegistry) -> None:
    _, handler = resolve_step(registry.get_flow_config(DESTUFF_WAREHOUSE), "store")

    payload = handler.parse_payload({"to_location_ids": [" ZONE-A ", ""], "attachments": ["doc-1"]})
    assert payload.to_location_ids == ["ZONE-A"]
    assert payload.model_dump()["attachments"] == ["doc-1"]

    with pytest.raises(ValidationError):
        handler.parse_payload({})
