from __future__ import annotations

from uuid import UUID

import pytest
from sqlalchemy.exc import IntegrityError

from cfs_core.core.database import session_scope
from cfs_core.models.cargo_package import CargoPackage
from cfs_core.models.enums import TransactionStatus
from cfs_core.models.package_transaction import PackageTransaction, PackageTransactionItem
from cfs_core.models.packing_list import PackingList
from cfs_core.schemas.package_transaction import PackageTransactionCreate
from cfs_core.services.errors import ConflictError
from cfs_core.services.transactions import PackageTransactionService


def _packing_list(code: str = "PL-RACE") -> UUID:
    with session_scope() as session:
        packing_list = PackingList(code=code)
        session.add(packing_list)
        session.flush()
        return packing_list.id


def _transaction(packing_list_id, code: str, status=TransactionStatus.IN_PROGRESS) -> PackageTransaction:
    return PackageTransaction(
        code=code,
        packing_list_id=packing_list_id,
        business_process_flow="destuffWarehouse",
        status=status,
    )


def test_storage_rejects_second_active_transaction() -> None:
    packing_list_id = _packing_list()

    with pytest.raises(IntegrityError):
        with session_scope() as session:
            session.add(_transaction(packing_list_id, "PT-1"))
            session.add(_transaction(packing_list_id, "PT-2"))
            session.flush()


def test_storage_allows_active_transaction_next_to_done_ones() -> None:
    packing_list_id = _packing_list()

    with session_scope() as session:
        session.add(_transaction(packing_list_id, "PT-1", TransactionStatus.DONE))
        session.add(_transaction(packing_list_id, "PT-2", TransactionStatus.DONE))
        session.add(_transaction(packing_list_id, "PT-3"))
        session.flush()


def test_storage_rejects_second_active_claim_on_a_package() -> None:
    packing_list_id = _packing_list()
    with session_scope() as session:
        package = CargoPackage(packing_list_id=packing_list_id, position_status="STORED", current_location_ids=[])
        first = _transaction(packing_list_id, "PT-1")
        second = PackageTransaction(
            code="PT-2",
            packing_list_id=packing_list_id,
            business_process_flow="stuffingWarehouse",
            status=TransactionStatus.IN_PROGRESS,
        )
        session.add_all([package, first, second])
        session.flush()
        package_id, first_id, second_id = package.id, first.id, second.id

    with pytest.raises(IntegrityError):
        with session_scope() as session:
            session.add(PackageTransactionItem(transaction_id=first_id, package_id=package_id, active=True))
            session.add(PackageTransactionItem(transaction_id=second_id, package_id=package_id, active=True))
            session.flush()


def test_create_race_past_precheck_becomes_conflict(monkeypatch) -> None:
    packing_list_id = _packing_list()
    payload = PackageTransactionCreate(
        packing_list_id=packing_list_id,
        business_process_flow="destuffWarehouse",
        party_name="Blue Ocean Logistics",
        party_type="FORWARDER",
    )
    with session_scope() as session:
        PackageTransactionService(session).create(payload)

    # Simulate a concurrent creator that read before the first insert committed.
    monkeypatch.setattr(PackageTransactionService, "_active_transaction", lambda self, *args: None)
    with pytest.raises(ConflictError):
        with session_scope() as session:
            PackageTransactionService(session).create(payload)


def _create_payload(packing_list_id) -> PackageTransactionCreate:
    return PackageTransactionCreate(
        packing_list_id=packing_list_id,
        business_process_flow="destuffWarehouse",
        party_name="Blue Ocean Logistics",
        party_type="FORWARDER",
    )


def test_create_regenerates_a_taken_transaction_code(monkeypatch) -> None:
    first_list = _packing_list("PL-A")
    second_list = _packing_list("PL-B")
    codes = iter(["PT-20250101-AAAAAA", "PT-20250101-AAAAAA", "PT-20250101-BBBBBB"])
    monkeypatch.setattr("cfs_core.services.transactions.generate_transaction_code", lambda prefix: next(codes))

    with session_scope() as session:
        first = PackageTransactionService(session).create(_create_payload(first_list))
        second = PackageTransactionService(session).create(_create_payload(second_list))
        assert (first.code, second.code) == ("PT-20250101-AAAAAA", "PT-20250101-BBBBBB")


def test_code_collision_is_not_reported_as_active_transaction(monkeypatch) -> None:
    first_list = _packing_list("PL-A")
    second_list = _packing_list("PL-B")
    monkeypatch.setattr(PackageTransactionService, "_new_code", lambda self: "PT-20250101-AAAAAA")

    with session_scope() as session:
        PackageTransactionService(session).create(_create_payload(first_list))

    with pytest.raises(ConflictError) as exc_info:
        with session_scope() as session:
            PackageTransactionService(session).create(_create_payload(second_list))
    assert "PT-20250101-AAAAAA is already taken" in str(exc_info.value)
