from __future__ import annotations

from fastapi.testclient import TestClient


def _stuff_everything(client: TestClient, transaction_id: str, package_ids) -> None:
    for step in ("select", "inspect", "stuffing"):
        client.post(
            f"/api/v1/package-transactions/{transaction_id}/handle-step",
            json={"step": step, "package_ids": package_ids},
        ).raise_for_status()


def test_seal_waits_for_every_packing_list(client: TestClient, seed_packing_list, open_transaction, event_publisher) -> None:
    container = client.post("/api/v1/containers", json={"number": "mscu1234567"}).json()
    assert container["number"] == "MSCU1234567"
    first = seed_packing_list(["STORED"], container_id=container["id"])
    second = seed_packing_list(["STORED", "STORED"], container_id=container["id"])
    seal_url = f"/api/v1/containers/{container['id']}/seal"

    no_transaction = client.post(seal_url, json={"seal_number": "SEAL-001"})
    assert no_transaction.status_code == 409
    assert "no stuffing transaction" in no_transaction.json()["detail"]

    first_ids = [package["id"] for package in first["packages"]]
    first_tx = open_transaction(first["packing_list"]["id"], "stuffingWarehouse", first_ids)
    _stuff_everything(client, first_tx["id"], first_ids)
    client.patch(f"/api/v1/package-transactions/{first_tx['id']}/complete").raise_for_status()

    second_ids = [package["id"] for package in second["packages"]]
    second_tx = open_transaction(second["packing_list"]["id"], "stuffingWarehouse", second_ids)
    _stuff_everything(client, second_tx["id"], second_ids)

    in_progress = client.post(seal_url, json={"seal_number": "SEAL-001"})
    assert in_progress.status_code == 409
    assert "in progress" in in_progress.json()["detail"]

    client.patch(f"/api/v1/package-transactions/{second_tx['id']}/complete").raise_for_status()

    sealed = client.post(seal_url, json={"seal_number": "SEAL-001", "note": "checked by gate"})
    sealed.raise_for_status()
    body = sealed.json()
    assert body["status"] == "SEALED"
    assert body["seal_number"] == "SEAL-001"
    assert body["sealed_at"] is not None
    assert event_publisher.envelopes[-1].event_type == "container.sealed"

    again = client.post(seal_url, json={"seal_number": "SEAL-002"})
    assert again.status_code == 409
    assert "already sealed" in again.json()["detail"]


def test_seal_requires_seal_number(client: TestClient, seed_packing_list) -> None:
    container = client.post("/api/v1/containers", json={"number": "MSCU7654321"}).json()

    response = client.post(f"/api/v1/containers/{container['id']}/seal", json={"seal_number": "   "})
    assert response.status_code == 400


def test_empty_container_cannot_be_sealed(client: TestClient) -> None:
    container = client.post("/api/v1/containers", json={"number": "CAIU0000001"}).json()

    response = client.post(f"/api/v1/containers/{container['id']}/seal", json={"seal_number": "SEAL-009"})
    assert response.status_code == 409
    assert "No packing lists" in response.json()["detail"]


def test_unknown_container_returns_404(client: TestClient) -> None:
    response = client.post(
        "/api/v1/containers/00000000-0000-0000-0000-000000000000/seal",
        json={"seal_number": "SEAL-001"},
    )
    assert response.status_code == 404


def test_duplicate_container_number_conflicts(client: TestClient) -> None:
    client.post("/api/v1/containers", json={"number": "TCLU1111111"}).raise_for_status()

    duplicate = client.post("/api/v1/containers", json={"number": "tclu1111111"})
    assert duplicate.status_code == 409


def test_seal_rejected_while_packages_remain_in_warehouse(client: TestClient, seed_packing_list, open_transaction) -> None:
    container = client.post("/api/v1/containers", json={"number": "MSCU2222222"}).json()
    seeded = seed_packing_list(["STORED", "STORED"], container_id=container["id"])
    stuffed_id, left_behind = [package["id"] for package in seeded["packages"]]

    transaction = open_transaction(seeded["packing_list"]["id"], "stuffingWarehouse", [stuffed_id])
    _stuff_everything(client, transaction["id"], [stuffed_id])
    client.patch(f"/api/v1/package-transactions/{transaction['id']}/complete").raise_for_status()

    response = client.post(f"/api/v1/containers/{container['id']}/seal", json={"seal_number": "SEAL-003"})
    assert response.status_code == 409
    assert "Only 1 of 2 package(s)" in response.json()["detail"]

    remaining = client.get(
        "/api/v1/cargo-packages",
        params={"packing_list_id": seeded["packing_list"]["id"], "status": "STORED"},
    ).json()
    assert [package["id"] for package in remaining["results"]] == [left_behind]
