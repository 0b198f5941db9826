import os
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("CFS_ENVIRONMENT", "test")
os.environ.setdefault("CFS_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("CFS_EVENT_TOPIC_ARN", "")
os.environ.setdefault("CFS_FLOW_REGISTRY_URL", "")
os.environ.setdefault("CFS_FLOW_DEFINITIONS_FILE", "")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from cfs_core.core.config import get_settings

get_settings.cache_clear()

from cfs_core.core.database import engine  # noqa: E402
from cfs_core.events_engine.dispatcher import EventDispatcher, set_event_dispatcher  # noqa: E402
from cfs_core.main import create_app  # noqa: E402
from cfs_core.models import Base  # noqa: E402
from cfs_core.workflow_engine.registry import set_flow_registry  # noqa: E402


class StubPublisher:
    def __init__(self) -> None:
        self.envelopes = []

    def publish(self, envelope):
        self.envelopes.append(envelope)


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    set_flow_registry(None)
    yield
    set_flow_registry(None)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def event_publisher() -> StubPublisher:
    publisher = StubPublisher()
    set_event_dispatcher(EventDispatcher(publisher=publisher, default_source="cfs_package_transactions", max_attempts=2))
    yield publisher
    set_event_dispatcher(None)


@pytest.fixture()
def client() -> TestClient:  # noqa: ANN001
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def seed_packing_list(client: TestClient) -> Callable[..., Dict[str, object]]:
    """Create a packing list with packages at the given statuses."""

    counter = {"value": 0}

    def _seed(
        statuses: List[Optional[str]],
        *,
        destuff_status: Optional[str] = "DONE",
        locations: Optional[List[str]] = None,
        container_id: Optional[str] = None,
    ) -> Dict[str, object]:
        counter["value"] += 1
        body = {"code": f"PL-{counter['value']:03d}", "hbl_code": f"HBL-{counter['value']:03d}"}
        if destuff_status is not None:
            body["destuff_status"] = destuff_status
        if container_id is not None:
            body["container_id"] = container_id
        packing_list_resp = client.post("/api/v1/packing-lists", json=body)
        packing_list_resp.raise_for_status()
        packing_list = packing_list_resp.json()

        packages_resp = client.post(
            f"/api/v1/packing-lists/{packing_list['id']}/packages",
            json={
                "packages": [
                    {
                        "package_no": f"{index + 1:03d}",
                        "position_status": status,
                        "current_location_ids": list(locations if locations is not None else ["ZONE-A-01"]),
                    }
                    for index, status in enumerate(statuses)
                ]
            },
        )
        packages_resp.raise_for_status()
        return {"packing_list": packing_list, "packages": packages_resp.json()}

    return _seed


@pytest.fixture()
def open_transaction(client: TestClient) -> Callable[..., Dict[str, object]]:
    """Create a transaction and optionally claim packages for it."""

    def _open(packing_list_id: str, flow: str, package_ids: Optional[List[str]] = None) -> Dict[str, object]:
        create_resp = client.post(
            "/api/v1/package-transactions",
            json={
                "packing_list_id": packing_list_id,
                "business_process_flow": flow,
                "party_name": "Blue Ocean Logistics",
                "party_type": "FORWARDER",
            },
        )
        create_resp.raise_for_status()
        transaction = create_resp.json()
        if package_ids:
            claim_resp = client.patch(
                f"/api/v1/package-transactions/{transaction['id']}",
                json={"package_ids": package_ids},
            )
            claim_resp.raise_for_status()
            transaction = claim_resp.json()
        return transaction

    return _open
