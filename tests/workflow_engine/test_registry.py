from __future__ import annotations

import json

import httpx
import pytest

from cfs_core.core.config import AppSettings
from cfs_core.services.errors import FlowRegistryError, NotFoundError, ValidationError
from cfs_core.workflow_engine.registry import (
    HttpFlowRegistry,
    InMemoryFlowRegistry,
    build_flow_config,
    build_flow_registry,
)

DELIVERY = {
    "name": "warehouseDelivery",
    "direction": "import",
    "steps": [
        {"code": "select", "fromStatus": "STORED", "toStatus": "CHECKOUT"},
        {"code": "inspect", "fromStatus": "CHECKOUT", "toStatus": "CHECKED"},
        {"code": "handover", "fromStatus": "CHECKED", "toStatus": "DELIVERED"},
    ],
}


def test_build_flow_config_accepts_camel_case_steps() -> None:
    flow = build_flow_config(DELIVERY)

    assert flow.initial_status == "STORED"
    assert flow.terminal_status == "DELIVERED"
    assert [step.code for step in flow.steps] == ["select", "inspect", "handover"]
    assert flow.step("inspect").from_status == "CHECKOUT"
    assert flow.step("stuffing") is None


@pytest.mark.parametrize(
    "steps",
    [
        [],
        [
            {"code": "select", "from_status": "STORED", "to_status": "CHECKOUT"},
            {"code": "select", "from_status": "CHECKOUT", "to_status": "CHECKED"},
        ],
        [
            {"code": "select", "from_status": "STORED", "to_status": "CHECKOUT"},
            {"code": "handover", "from_status": "CHECKED", "to_status": "DELIVERED"},
        ],
        [
            {"code": "select", "from_status": "STORED", "to_status": "CHECKOUT"},
            {"code": "undo", "from_status": "CHECKOUT", "to_status": "STORED"},
        ],
    ],
    ids=["empty", "duplicate-code", "gap", "cycle"],
)
def test_build_flow_config_rejects_invalid_chains(steps) -> None:
    with pytest.raises(ValidationError):
        build_flow_config({"name": "broken", "direction": "import", "steps": steps})


def test_in_memory_registry_lookup() -> None:
    registry = InMemoryFlowRegistry()
    registry.ensure_default_flows([DELIVERY])

    assert registry.get_flow_config("warehouseDelivery").direction == "import"
    assert list(registry.all()) == ["warehouseDelivery"]
    with pytest.raises(NotFoundError):
        registry.get_flow_config("unknownFlow")


def test_flow_definitions_file_overrides_defaults(tmp_path) -> None:
    override = {
        "warehouseDelivery": {
            "direction": "import",
            "steps": [
                {"code": "select", "fromStatus": "STORED", "toStatus": "CHECKOUT"},
                {"code": "handover", "fromStatus": "CHECKOUT", "toStatus": "DELIVERED"},
            ],
        }
    }
    path = tmp_path / "flows.json"
    path.write_text(json.dumps(override), encoding="utf-8")

    registry = build_flow_registry(AppSettings(flow_definitions_file=str(path), flow_registry_url=None))

    assert [step.code for step in registry.get_flow_config("warehouseDelivery").steps] == ["select", "handover"]
    assert registry.get_flow_config("stuffingWarehouse").terminal_status == "IN_CONTAINER"


def _http_registry(handler) -> HttpFlowRegistry:
    return HttpFlowRegistry(base_url="http://flows.test/api/", transport=httpx.MockTransport(handler))


def test_http_registry_reads_wrapped_flow() -> None:
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(request.url.path)
        return httpx.Response(200, json={"data": {key: value for key, value in DELIVERY.items() if key != "name"}})

    registry = _http_registry(handler)
    flow = registry.get_flow_config("warehouseDelivery")
    registry.close()

    assert requested == ["/api/v1/package-transactions/flows/warehouseDelivery"]
    assert flow.name == "warehouseDelivery"
    assert flow.terminal_status == "DELIVERED"


def test_http_registry_maps_missing_flow_to_not_found() -> None:
    registry = _http_registry(lambda request: httpx.Response(404, json={"detail": "missing"}))

    with pytest.raises(NotFoundError):
        registry.get_flow_config("unknownFlow")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"data": {"direction": "import", "steps": []}}),
    ],
    ids=["server-error", "invalid-json", "invalid-flow"],
)
def test_http_registry_wraps_upstream_failures(response) -> None:
    registry = _http_registry(lambda request: response)

    with pytest.raises(FlowRegistryError):
        registry.get_flow_config("warehouseDelivery")


def test_http_registry_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FlowRegistryError):
        _http_registry(handler).get_flow_config("warehouseDelivery")
