from __future__ import annotations

from uuid import UUID

import httpx
from fastapi.testclient import TestClient
from sqlalchemy import select

from cfs_core.core.database import session_scope
from cfs_core.main import create_app
from cfs_core.models.audit_log import AuditLog
from cfs_core.models.cargo_package import CargoPackage
from cfs_core.models.package_movement import PackageMovement
from cfs_core.models.package_transaction import PackageTransactionItem
from cfs_core.workflow_engine.registry import HttpFlowRegistry, get_flow_registry, set_flow_registry


def test_health_check(client: TestClient) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_readiness_check_touches_database_and_registry(client: TestClient) -> None:
    response = client.get("/readyz")
    response.raise_for_status()
    assert response.json() == {"status": "ready", "database": "sqlite", "flow_registry": "InMemoryFlowRegistry"}


def test_shutdown_discards_closed_http_registry() -> None:
    registry = HttpFlowRegistry(
        base_url="http://flows.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(404)),
    )
    set_flow_registry(registry)

    with TestClient(create_app()) as test_client:
        assert test_client.get("/api/v1/flows/warehouseDelivery").status_code == 404

    assert get_flow_registry() is not registry


def test_get_flow_lists_steps_and_executable_codes(client: TestClient) -> None:
    response = client.get("/api/v1/flows/destuffWarehouse")
    response.raise_for_status()
    flow = response.json()

    assert flow["direction"] == "import"
    assert [step["code"] for step in flow["steps"]] == ["create", "store"]
    assert flow["steps"][0]["from_status"] is None
    assert flow["executable_steps"] == ["store"]

    assert client.get("/api/v1/flows/unknownFlow").status_code == 404


def test_fetch_by_status_paginates_and_matches_null_status(client: TestClient, seed_packing_list) -> None:
    seeded = seed_packing_list(["STORED", "STORED", "STORED", None])
    packing_list_id = seeded["packing_list"]["id"]

    page = client.get(
        "/api/v1/cargo-packages",
        params={"packing_list_id": packing_list_id, "status": "STORED", "page_size": 2},
    ).json()
    assert page["total"] == 3
    assert [package["package_no"] for package in page["results"]] == ["001", "002"]

    without_status = client.get("/api/v1/cargo-packages", params={"packing_list_id": packing_list_id}).json()
    assert without_status["total"] == 1
    assert without_status["results"][0]["package_no"] == "004"

    packing_list = client.get(f"/api/v1/packing-lists/{packing_list_id}").json()
    assert packing_list["number_of_packages"] == 4


def test_movements_and_audit_trail_are_recorded(client: TestClient, seed_packing_list, open_transaction) -> None:
    seeded = seed_packing_list(["STORED"])
    package_id = seeded["packages"][0]["id"]
    transaction = open_transaction(seeded["packing_list"]["id"], "warehouseDelivery", [package_id])

    client.post(
        f"/api/v1/package-transactions/{transaction['id']}/handle-step",
        json={"step": "select", "package_ids": [package_id], "payload": {"note": "picked at gate 3"}},
    ).raise_for_status()

    with session_scope() as session:
        movements = session.scalars(select(PackageMovement)).all()
        assert [(movement.step_code, movement.from_status, movement.to_status) for movement in movements] == [
            ("select", "STORED", "CHECKOUT")
        ]
        assert movements[0].payload == {"note": "picked at gate 3"}

        actions = session.scalars(select(AuditLog.action).order_by(AuditLog.occurred_at)).all()
        assert "package_transaction.create" in actions
        assert "package_transaction.update" in actions


def test_reading_a_transaction_reports_live_status_without_writing(client: TestClient, seed_packing_list, open_transaction) -> None:
    seeded = seed_packing_list(["STORED"])
    package_id = seeded["packages"][0]["id"]
    transaction = open_transaction(seeded["packing_list"]["id"], "warehouseDelivery", [package_id])

    with session_scope() as session:
        session.get(CargoPackage, UUID(package_id)).position_status = "CHECKOUT"

    detail = client.get(f"/api/v1/package-transactions/{transaction['id']}").json()
    assert detail["packages"][0]["position_status"] == "CHECKOUT"
    assert detail["packages"][0]["active_step"] == "inspect"
    assert detail["step_counts"]["select"] == 1

    with session_scope() as session:
        item = session.scalars(
            select(PackageTransactionItem).where(PackageTransactionItem.package_id == UUID(package_id))
        ).one()
        assert item.position_status == "STORED"
