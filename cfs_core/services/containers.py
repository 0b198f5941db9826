"""Container registration and sealing."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cfs_core.events_engine import EventDispatcher, get_event_dispatcher
from cfs_core.events_engine.publisher import EventPublishError
from cfs_core.models.cargo_package import CargoPackage
from cfs_core.models.container import Container
from cfs_core.models.enums import ContainerStatus, TransactionStatus
from cfs_core.models.package_transaction import PackageTransaction
from cfs_core.models.packing_list import PackingList
from cfs_core.schemas.container import ContainerCreate
from cfs_core.services.aggregation import PackageSnapshot, SealEligibility, seal_eligibility
from cfs_core.services.audit import AuditService
from cfs_core.services.errors import ConflictError, NotFoundError, StateError, ValidationError
from cfs_core.workflow_engine.defaults import STUFFING_WAREHOUSE
from cfs_core.workflow_engine.registry import FlowRegistry, get_flow_registry


class ContainerService:
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
        self._logger = logging.getLogger("cfs_core.services.containers")

    def create(self, payload: ContainerCreate, *, actor_id: Optional[str] = None) -> Container:
        container = Container(number=payload.number.strip().upper(), status=payload.status)
        self._session.add(container)
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            raise ConflictError(f"Container '{payload.number}' already exists") from exc

        self._audit.record(
            action="container.create",
            actor_id=actor_id,
            container_id=container.id,
            details={"number": container.number},
        )
        self._logger.info("container_created", extra={"container_id": str(container.id), "number": container.number})
        return container

    def get(self, container_id: UUID) -> Container:
        container = self._session.get(Container, container_id)
        if container is None:
            raise NotFoundError(f"Container {container_id} not found")
        return container

    def eligibility(self, container: Container) -> SealEligibility:
        """Seal eligibility from the stuffing transactions and packages of every assigned packing list."""

        codes: Dict[UUID, str] = dict(
            self._session.execute(
                select(PackingList.id, PackingList.code)
                .where(PackingList.container_id == container.id)
                .order_by(PackingList.code)
            ).all()
        )
        statuses: Dict[UUID, List[TransactionStatus]] = defaultdict(list)
        packages: Dict[UUID, List[PackageSnapshot]] = defaultdict(list)
        if codes:
            stmt = select(PackageTransaction.packing_list_id, PackageTransaction.status).where(
                PackageTransaction.packing_list_id.in_(list(codes)),
                PackageTransaction.business_process_flow == STUFFING_WAREHOUSE,
            )
            for packing_list_id, status in self._session.execute(stmt):
                statuses[packing_list_id].append(status)

            package_stmt = select(CargoPackage.packing_list_id, CargoPackage.id, CargoPackage.position_status).where(
                CargoPackage.packing_list_id.in_(list(codes))
            )
            for packing_list_id, package_id, position_status in self._session.execute(package_stmt):
                packages[packing_list_id].append(PackageSnapshot(str(package_id), position_status))

        stuffing = self._registry.get_flow_config(STUFFING_WAREHOUSE)
        return seal_eligibility(
            container.status,
            {code: statuses[key] for key, code in codes.items()},
            {code: packages[key] for key, code in codes.items()},
            stuffing.terminal_status,
        )

    def seal(
        self,
        container_id: UUID,
        seal_number: str,
        *,
        note: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> Container:
        container = self.get(container_id)
        seal_number = (seal_number or "").strip()
        if not seal_number:
            raise ValidationError("Seal number is required")

        eligibility = self.eligibility(container)
        if not eligibility.eligible:
            self._logger.info(
                "container_seal_rejected",
                extra={"container_id": str(container.id), "reason": eligibility.reason},
            )
            raise StateError(f"Container {container.number} cannot be sealed: {eligibility.reason}")

        container.status = ContainerStatus.SEALED
        container.seal_number = seal_number
        container.sealed_at = datetime.now(timezone.utc)
        self._session.flush()

        self._audit.record(
            action="container.seal",
            actor_id=actor_id,
            container_id=container.id,
            details={"seal_number": seal_number, "note": note},
        )
        self._logger.info("container_sealed", extra={"container_id": str(container.id), "seal_number": seal_number})
        try:
            self._events.publish_event(
                event_type="container.sealed",
                payload={"container_id": str(container.id), "number": container.number, "seal_number": seal_number},
                correlation_id=str(container.id),
            )
        except EventPublishError:
            self._logger.exception("container_seal_event_failed", extra={"container_id": str(container.id)})
        return container
