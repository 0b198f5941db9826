"""Package transaction lifecycle service."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cfs_core.core.config import get_settings
from cfs_core.events_engine import EventDispatcher, get_event_dispatcher
from cfs_core.events_engine.publisher import EventPublishError
from cfs_core.models.cargo_package import CargoPackage
from cfs_core.models.enums import TransactionStatus
from cfs_core.models.package_movement import PackageMovement
from cfs_core.models.package_transaction import PackageTransaction, PackageTransactionItem
from cfs_core.models.packing_list import PackingList
from cfs_core.schemas.package_transaction import (
    PackageTransactionCreate,
    PackageTransactionFilter,
    PackageTransactionUpdate,
)
from cfs_core.services.aggregation import PackageSnapshot, completion_blocker, step_counts
from cfs_core.services.audit import AuditService
from cfs_core.services.errors import (
    ConflictError,
    NotFoundError,
    PackageFailure,
    StateError,
    ValidationError,
)
from cfs_core.services.readiness import ensure_ready
from cfs_core.workflow_engine.engine import active_step_for
from cfs_core.workflow_engine.registry import BusinessFlowStep, FlowConfig, FlowRegistry, get_flow_registry
from cfs_core.workflow_engine.steps import entry_step


@dataclass
class PackageProgress:
    package_id: UUID
    package_no: Optional[str]
    position_status: Optional[str]
    active_step: Optional[str]


@dataclass
class TransactionProgress:
    """Counts and eligibility recomputed from the current package rows."""

    packages: List[PackageProgress]
    step_counts: Dict[str, int]
    completion_blocker: Optional[str]
    can_delete: bool

    @property
    def can_complete(self) -> bool:
        return self.completion_blocker is None


CODE_ATTEMPTS = 5


def generate_transaction_code(prefix: str, now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return f"{prefix}-{moment:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


class PackageTransactionService:
    """Creates, claims for, completes and deletes package transactions."""

    def __init__(
        self,
        session: Session,
        registry: Optional[FlowRegistry] = None,
        audit_service: Optional[AuditService] = None,
        event_dispatcher: Optional[EventDispatcher] = None,
    ) -> None:
        self._session = session
        self._registry = registry or get_flow_registry()
        self._audit = audit_service or AuditService(session)
        self._events = event_dispatcher or get_event_dispatcher()
        self._logger = logging.getLogger("cfs_core.services.transactions")

    def create(self, payload: PackageTransactionCreate, *, actor_id: Optional[str] = None) -> PackageTransaction:
        packing_list = self._session.get(PackingList, payload.packing_list_id)
        if packing_list is None:
            raise NotFoundError(f"Packing list {payload.packing_list_id} not found")
        flow = self._registry.get_flow_config(payload.business_process_flow)

        if self._active_transaction(packing_list.id, flow.name) is not None:
            raise ConflictError(
                f"Packing list {packing_list.code} already has an in-progress '{flow.name}' transaction"
            )
        ensure_ready(self._session, packing_list, flow)

        code = self._new_code()
        transaction = PackageTransaction(
            code=code,
            packing_list_id=packing_list.id,
            business_process_flow=flow.name,
            party_name=payload.party_name,
            party_type=payload.party_type,
            status=TransactionStatus.IN_PROGRESS,
        )
        self._session.add(transaction)
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            if self._code_taken(code):
                raise ConflictError(f"Transaction code {code} is already taken; retry the request") from exc
            raise ConflictError(
                f"Packing list {packing_list.code} already has an in-progress '{flow.name}' transaction"
            ) from exc

        self._audit.record(
            action="package_transaction.create",
            actor_id=actor_id,
            transaction_id=transaction.id,
            packing_list_id=packing_list.id,
            details={"code": transaction.code, "flow": flow.name, "party_type": _enum_value(transaction.party_type)},
        )
        self._logger.info(
            "package_transaction_created",
            extra={"transaction_id": str(transaction.id), "code": transaction.code, "flow": flow.name},
        )
        self._publish("package_transaction.created", _event_payload(transaction))
        return transaction

    def get(self, transaction_id: UUID) -> PackageTransaction:
        transaction = self._session.get(PackageTransaction, transaction_id)
        if transaction is None:
            raise NotFoundError(f"Package transaction {transaction_id} not found")
        return transaction

    def list(self, filters: PackageTransactionFilter) -> Tuple[List[PackageTransaction], int]:
        stmt = select(PackageTransaction)
        if filters.packing_list_id:
            stmt = stmt.where(PackageTransaction.packing_list_id == filters.packing_list_id)
        if filters.business_process_flow:
            stmt = stmt.where(PackageTransaction.business_process_flow == filters.business_process_flow)
        if filters.status:
            stmt = stmt.where(PackageTransaction.status == filters.status)
        if filters.party_type:
            stmt = stmt.where(PackageTransaction.party_type == filters.party_type)
        if filters.code:
            stmt = stmt.where(PackageTransaction.code.ilike(f"%{filters.code}%"))
        if filters.package_ids:
            claimed = select(PackageTransactionItem.transaction_id).where(
                PackageTransactionItem.package_id.in_(filters.package_ids)
            )
            stmt = stmt.where(PackageTransaction.id.in_(claimed))

        total = self._session.scalar(select(func.count()).select_from(stmt.subquery())) or 0

        created = PackageTransaction.created_at.asc() if filters.order == "asc" else PackageTransaction.created_at.desc()
        stmt = (
            stmt.order_by(created, PackageTransaction.code)
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
        )
        return list(self._session.scalars(stmt).unique()), total

    def update_claim(
        self,
        transaction_id: UUID,
        payload: PackageTransactionUpdate,
        *,
        actor_id: Optional[str] = None,
    ) -> PackageTransaction:
        """Replace the claimed package set and/or the party details.

        New packages must belong to the transaction's packing list and sit at
        the ``from_status`` of the flow's first executable step. A package may
        only be released while this transaction has not moved it yet.
        """

        transaction = self.get(transaction_id)
        self._ensure_in_progress(transaction)

        updates = payload.model_dump(exclude_unset=True)
        if "party_name" in updates:
            party_name = (payload.party_name or "").strip()
            if not party_name:
                raise ValidationError("Party name is required")
            transaction.party_name = party_name
        if "party_type" in updates:
            if payload.party_type is None:
                raise ValidationError("Party type is required")
            transaction.party_type = payload.party_type

        added: List[UUID] = []
        released: List[UUID] = []
        if payload.package_ids is not None:
            added, released = self._replace_claims(transaction, payload.package_ids)

        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            raise ConflictError("One or more packages are already claimed by another active transaction") from exc

        self._audit.record(
            action="package_transaction.update",
            actor_id=actor_id,
            transaction_id=transaction.id,
            packing_list_id=transaction.packing_list_id,
            details={
                "added": [str(package_id) for package_id in added],
                "released": [str(package_id) for package_id in released],
                "party_name": transaction.party_name,
                "party_type": _enum_value(transaction.party_type),
            },
        )
        self._logger.info(
            "package_transaction_claims_updated",
            extra={"transaction_id": str(transaction.id), "added": len(added), "released": len(released)},
        )
        return transaction

    def complete(self, transaction_id: UUID, *, actor_id: Optional[str] = None) -> PackageTransaction:
        transaction = self.get(transaction_id)
        self._ensure_in_progress(transaction)

        flow = self._registry.get_flow_config(transaction.business_process_flow)
        snapshots = self.snapshot(transaction)
        blocker = completion_blocker(snapshots, flow.steps)
        if blocker is not None:
            counts = step_counts(snapshots, flow.steps)
            self._logger.info(
                "package_transaction_completion_blocked",
                extra={"transaction_id": str(transaction.id), "step_counts": counts},
            )
            raise StateError(
                f"Package transaction {transaction.code} cannot be completed: {blocker}",
                _pending_failures(snapshots, flow),
            )

        transaction.status = TransactionStatus.DONE
        transaction.ended_at = datetime.now(timezone.utc)
        for item in transaction.packages:
            item.active = False
        self._session.flush()

        self._audit.record(
            action="package_transaction.complete",
            actor_id=actor_id,
            transaction_id=transaction.id,
            packing_list_id=transaction.packing_list_id,
            details={"step_counts": step_counts(snapshots, flow.steps)},
        )
        self._logger.info(
            "package_transaction_completed",
            extra={"transaction_id": str(transaction.id), "packages": len(snapshots)},
        )
        self._publish("package_transaction.completed", _event_payload(transaction))
        return transaction

    def delete(self, transaction_id: UUID, *, actor_id: Optional[str] = None) -> None:
        transaction = self.get(transaction_id)
        if transaction.status == TransactionStatus.DONE:
            raise ConflictError(f"Package transaction {transaction.code} is done and cannot be deleted")
        if transaction.packages:
            raise ConflictError(
                f"Package transaction {transaction.code} still claims {len(transaction.packages)} package(s)"
            )

        details = {"code": transaction.code, "flow": transaction.business_process_flow}
        packing_list_id = transaction.packing_list_id
        event_payload = _event_payload(transaction)
        self._session.delete(transaction)
        self._session.flush()

        self._audit.record(
            action="package_transaction.delete",
            actor_id=actor_id,
            transaction_id=transaction_id,
            packing_list_id=packing_list_id,
            details=details,
        )
        self._logger.info("package_transaction_deleted", extra={"transaction_id": str(transaction_id)})
        self._publish("package_transaction.deleted", event_payload)

    def snapshot(self, transaction: PackageTransaction) -> List[PackageSnapshot]:
        """Read the claimed packages' statuses straight from the package rows.

        Read-only: the claim items' cached ``position_status`` is only written
        by the workflow engine when it moves a package.
        """

        self._session.flush()
        stmt = (
            select(PackageTransactionItem.package_id, CargoPackage.position_status)
            .join(CargoPackage, CargoPackage.id == PackageTransactionItem.package_id)
            .where(PackageTransactionItem.transaction_id == transaction.id)
            .order_by(PackageTransactionItem.claimed_at)
        )
        return [
            PackageSnapshot(str(package_id), position_status)
            for package_id, position_status in self._session.execute(stmt)
        ]

    def progress(self, transaction: PackageTransaction) -> TransactionProgress:
        flow = self._registry.get_flow_config(transaction.business_process_flow)
        snapshots = self.snapshot(transaction)
        live = {snapshot.package_id: snapshot.position_status for snapshot in snapshots}
        packages = []
        for item in transaction.packages:
            position_status = live.get(str(item.package_id), item.position_status)
            packages.append(
                PackageProgress(
                    package_id=item.package_id,
                    package_no=item.package.package_no if item.package is not None else None,
                    position_status=position_status,
                    active_step=_step_code(active_step_for(position_status, flow.steps)),
                )
            )
        return TransactionProgress(
            packages=packages,
            step_counts=step_counts(snapshots, flow.steps),
            completion_blocker=completion_blocker(snapshots, flow.steps)
            if transaction.status == TransactionStatus.IN_PROGRESS
            else "Package transaction is already done",
            can_delete=transaction.status != TransactionStatus.DONE and not transaction.packages,
        )

    def _replace_claims(self, transaction: PackageTransaction, package_ids: Sequence[UUID]) -> Tuple[List[UUID], List[UUID]]:
        if len(set(package_ids)) != len(package_ids):
            raise ValidationError("Package ids must be unique")

        flow = self._registry.get_flow_config(transaction.business_process_flow)
        current: Dict[UUID, PackageTransactionItem] = {item.package_id: item for item in transaction.packages}
        requested = list(package_ids)
        new_ids = [package_id for package_id in requested if package_id not in current]
        released_ids = [package_id for package_id in current if package_id not in set(requested)]

        packages: Dict[UUID, CargoPackage] = {}
        failures: List[PackageFailure] = []
        if released_ids:
            moved = set(
                self._session.scalars(
                    select(PackageMovement.package_id).where(
                        PackageMovement.transaction_id == transaction.id,
                        PackageMovement.package_id.in_(released_ids),
                    )
                )
            )
            failures = [
                PackageFailure(
                    str(package_id),
                    "already_moved",
                    current_status=current[package_id].package.position_status,
                )
                for package_id in released_ids
                if package_id in moved
            ]
        if failures:
            raise StateError(
                f"{len(failures)} package(s) already moved in this transaction and cannot be released: "
                + ", ".join(failure.package_id for failure in failures),
                failures,
            )

        if new_ids:
            packages = {
                package.id: package
                for package in self._session.scalars(select(CargoPackage).where(CargoPackage.id.in_(new_ids)))
            }
            missing = [package_id for package_id in new_ids if package_id not in packages]
            if missing:
                raise NotFoundError("Cargo package(s) not found: " + ", ".join(str(package_id) for package_id in missing))

            entry = entry_step(flow)
            for package_id in new_ids:
                package = packages[package_id]
                if package.packing_list_id != transaction.packing_list_id:
                    failures.append(PackageFailure(str(package_id), "wrong_packing_list", current_status=package.position_status))
                elif entry is None or package.position_status != entry.from_status:
                    failures.append(
                        PackageFailure(
                            str(package_id),
                            "status_mismatch",
                            current_status=package.position_status,
                            expected_status=entry.from_status if entry is not None else None,
                        )
                    )
            if failures:
                raise StateError(f"{len(failures)} package(s) cannot be claimed by this transaction", failures)

            claimed_elsewhere = self._session.scalars(
                select(PackageTransactionItem.package_id).where(
                    PackageTransactionItem.package_id.in_(new_ids),
                    PackageTransactionItem.active.is_(True),
                    PackageTransactionItem.transaction_id != transaction.id,
                )
            ).all()
            if claimed_elsewhere:
                raise ConflictError(
                    "Package(s) already claimed by another active transaction: "
                    + ", ".join(str(package_id) for package_id in claimed_elsewhere)
                )

        for package_id in released_ids:
            transaction.packages.remove(current[package_id])
        for package_id in new_ids:
            transaction.packages.append(
                PackageTransactionItem(
                    package_id=package_id,
                    position_status=packages[package_id].position_status,
                    active=True,
                )
            )
        return new_ids, released_ids

    def _new_code(self) -> str:
        prefix = get_settings().transaction_code_prefix
        for _ in range(CODE_ATTEMPTS):
            code = generate_transaction_code(prefix)
            if not self._code_taken(code):
                return code
        raise ConflictError("Could not allocate a unique transaction code")

    def _code_taken(self, code: str) -> bool:
        stmt = select(PackageTransaction.id).where(PackageTransaction.code == code)
        return self._session.scalars(stmt).first() is not None

    def _active_transaction(self, packing_list_id: UUID, flow_name: str) -> Optional[PackageTransaction]:
        stmt = select(PackageTransaction).where(
            PackageTransaction.packing_list_id == packing_list_id,
            PackageTransaction.business_process_flow == flow_name,
            PackageTransaction.status == TransactionStatus.IN_PROGRESS,
        )
        return self._session.scalars(stmt).unique().first()

    @staticmethod
    def _ensure_in_progress(transaction: PackageTransaction) -> None:
        if transaction.status != TransactionStatus.IN_PROGRESS:
            raise StateError(f"Package transaction {transaction.code} is {transaction.status.value}")

    def _publish(self, event_type: str, payload: Dict[str, object]) -> None:
        try:
            self._events.publish_event(
                event_type=event_type,
                payload=payload,
                correlation_id=str(payload["transaction_id"]),
            )
        except EventPublishError:
            self._logger.exception(
                "package_transaction_event_failed",
                extra={"transaction_id": payload["transaction_id"], "event_type": event_type},
            )


def _event_payload(transaction: PackageTransaction) -> Dict[str, object]:
    return {
        "transaction_id": str(transaction.id),
        "code": transaction.code,
        "packing_list_id": str(transaction.packing_list_id),
        "business_process_flow": transaction.business_process_flow,
        "status": transaction.status.value,
    }


def _pending_failures(snapshots: Sequence[PackageSnapshot], flow: FlowConfig) -> List[PackageFailure]:
    return [
        PackageFailure(
            snapshot.package_id,
            "not_finished",
            current_status=snapshot.position_status,
            expected_status=flow.terminal_status,
        )
        for snapshot in snapshots
        if snapshot.position_status != flow.terminal_status
    ]


def _step_code(step: Optional[BusinessFlowStep]) -> Optional[str]:
    return step.code if step is not None else None


def _enum_value(value) -> Optional[str]:
    return value.value if value is not None else None
