"""Packing list and cargo package store."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cfs_core.models.cargo_package import CargoPackage
from cfs_core.models.container import Container
from cfs_core.models.packing_list import PackingList
from cfs_core.schemas.packing_list import CargoPackageCreate, PackingListCreate, PackingListUpdate
from cfs_core.services.audit import AuditService
from cfs_core.services.errors import ConflictError, NotFoundError


class PackingListService:
    """Minimal packing list surface the workflow engine reads from."""

    def __init__(self, session: Session, audit_service: Optional[AuditService] = None) -> None:
        self._session = session
        self._audit = audit_service or AuditService(session)
        self._logger = logging.getLogger("cfs_core.services.packing_lists")

    def create(self, payload: PackingListCreate, *, actor_id: Optional[str] = None) -> PackingList:
        if payload.container_id is not None:
            self._get_container(payload.container_id)
        packing_list = PackingList(
            code=payload.code.strip(),
            hbl_code=payload.hbl_code,
            destuff_status=payload.destuff_status,
            container_id=payload.container_id,
        )
        self._session.add(packing_list)
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            raise ConflictError(f"Packing list '{payload.code}' already exists") from exc

        self._audit.record(
            action="packing_list.create",
            actor_id=actor_id,
            packing_list_id=packing_list.id,
            container_id=packing_list.container_id,
            details={"code": packing_list.code},
        )
        self._logger.info("packing_list_created", extra={"packing_list_id": str(packing_list.id), "code": packing_list.code})
        return packing_list

    def get(self, packing_list_id: UUID) -> PackingList:
        packing_list = self._session.get(PackingList, packing_list_id)
        if packing_list is None:
            raise NotFoundError(f"Packing list {packing_list_id} not found")
        return packing_list

    def update(self, packing_list_id: UUID, payload: PackingListUpdate, *, actor_id: Optional[str] = None) -> PackingList:
        packing_list = self.get(packing_list_id)

        updates = payload.model_dump(exclude_unset=True)
        if "hbl_code" in updates:
            packing_list.hbl_code = updates["hbl_code"]
        if "destuff_status" in updates:
            packing_list.destuff_status = updates["destuff_status"]
        if "container_id" in updates:
            if updates["container_id"] is not None:
                self._get_container(updates["container_id"])
            packing_list.container_id = updates["container_id"]
        self._session.flush()

        self._audit.record(
            action="packing_list.update",
            actor_id=actor_id,
            packing_list_id=packing_list.id,
            container_id=packing_list.container_id,
            details={"changes": payload.model_dump(mode="json", exclude_unset=True)},
        )
        self._logger.info("packing_list_updated", extra={"packing_list_id": str(packing_list.id)})
        return packing_list

    def add_packages(self, packing_list_id: UUID, packages: Sequence[CargoPackageCreate]) -> List[CargoPackage]:
        packing_list = self.get(packing_list_id)
        created = [
            CargoPackage(
                packing_list_id=packing_list.id,
                package_no=package.package_no,
                position_status=package.position_status,
                current_location_ids=list(package.current_location_ids),
                condition_status=package.condition_status,
                regulatory_status=package.regulatory_status,
            )
            for package in packages
        ]
        self._session.add_all(created)
        self._session.flush()
        self._logger.info(
            "cargo_packages_added",
            extra={"packing_list_id": str(packing_list.id), "count": len(created)},
        )
        return created

    def count_packages(self, packing_list_id: UUID) -> int:
        stmt = select(func.count(CargoPackage.id)).where(CargoPackage.packing_list_id == packing_list_id)
        return self._session.scalar(stmt) or 0

    def fetch_by_status(
        self,
        packing_list_id: UUID,
        status: Optional[str],
        *,
        page: int = 1,
        page_size: int = 100,
    ) -> Tuple[List[CargoPackage], int]:
        """Packages of a packing list at ``status``; ``None`` matches packages with no status yet."""

        self.get(packing_list_id)
        stmt = select(CargoPackage).where(CargoPackage.packing_list_id == packing_list_id)
        if status is None:
            stmt = stmt.where(CargoPackage.position_status.is_(None))
        else:
            stmt = stmt.where(CargoPackage.position_status == status)

        total = self._session.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        stmt = stmt.order_by(CargoPackage.package_no, CargoPackage.id).offset((page - 1) * page_size).limit(page_size)
        return list(self._session.scalars(stmt)), total

    def _get_container(self, container_id: UUID) -> Container:
        container = self._session.get(Container, container_id)
        if container is None:
            raise NotFoundError(f"Container {container_id} not found")
        return container
