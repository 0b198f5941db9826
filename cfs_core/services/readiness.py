"""Flow-specific readiness checks run before a transaction is created.

Checks execute inside the same database transaction as the insert that
follows them; the partial unique index on active transactions remains the
guard against concurrent creators.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

from sqlalchemy import select
from sqlalchemy.orm import Session

from cfs_core.models.cargo_package import CargoPackage
from cfs_core.models.enums import ContainerStatus, DestuffStatus
from cfs_core.models.packing_list import PackingList
from cfs_core.services.errors import PreconditionError
from cfs_core.workflow_engine.defaults import STUFFING_WAREHOUSE, WAREHOUSE_DELIVERY
from cfs_core.workflow_engine.registry import FlowConfig

logger = logging.getLogger("cfs_core.services.readiness")

ReadinessCheck = Callable[[Session, PackingList, FlowConfig], None]


def _packages(session: Session, packing_list: PackingList) -> list[CargoPackage]:
    stmt = select(CargoPackage).where(CargoPackage.packing_list_id == packing_list.id)
    return list(session.scalars(stmt))


def check_delivery_ready(session: Session, packing_list: PackingList, flow: FlowConfig) -> None:
    """Destuffing must be done and every undelivered package stored with a location."""

    if packing_list.destuff_status != DestuffStatus.DONE:
        raise PreconditionError(f"HBL destuffing is not done yet for packing list {packing_list.code}")

    packages = _packages(session, packing_list)
    if not packages:
        raise PreconditionError(f"No cargo packages found for packing list {packing_list.code}")

    pending = [package for package in packages if package.position_status != flow.terminal_status]
    if not pending:
        raise PreconditionError(f"All packages of packing list {packing_list.code} are already delivered")

    not_ready = [
        package
        for package in pending
        if package.position_status != flow.initial_status
        or not any(location.strip() for location in package.current_location_ids or [])
    ]
    if not_ready:
        raise PreconditionError(
            f"{len(not_ready)} package(s) are not fully stored yet. "
            "Complete storage before creating delivery transaction."
        )


def check_stuffing_ready(session: Session, packing_list: PackingList, flow: FlowConfig) -> None:
    container = packing_list.container
    if container is not None and container.status in (ContainerStatus.STUFFED, ContainerStatus.SEALED):
        raise PreconditionError(f"Container {container.number} is already stuffed")

    packages = _packages(session, packing_list)
    if not packages:
        raise PreconditionError(f"No cargo packages found for packing list {packing_list.code}")
    if all(package.position_status == flow.terminal_status for package in packages):
        raise PreconditionError(f"Packing list {packing_list.code} is already in container")


READINESS_CHECKS: Dict[str, ReadinessCheck] = {
    WAREHOUSE_DELIVERY: check_delivery_ready,
    STUFFING_WAREHOUSE: check_stuffing_ready,
}


def ensure_ready(session: Session, packing_list: PackingList, flow: FlowConfig) -> None:
    check = READINESS_CHECKS.get(flow.name)
    if check is None:
        return
    try:
        check(session, packing_list, flow)
    except PreconditionError as exc:
        logger.info(
            "transaction_readiness_failed",
            extra={"packing_list_id": str(packing_list.id), "flow": flow.name, "reason": str(exc)},
        )
        raise
