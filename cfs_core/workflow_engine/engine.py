"""Workflow engine: moves claimed packages one step along a business flow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from cfs_core.models.cargo_package import CargoPackage
from cfs_core.models.enums import TransactionStatus
from cfs_core.models.package_movement import PackageMovement
from cfs_core.models.package_transaction import PackageTransaction, PackageTransactionItem
from cfs_core.services.errors import NotFoundError, PackageFailure, StateError, ValidationError
from cfs_core.workflow_engine.registry import BusinessFlowStep, FlowRegistry, get_flow_registry
from cfs_core.workflow_engine.steps import resolve_step

logger = logging.getLogger("cfs_core.workflow_engine.engine")


def active_step_for(position_status: Optional[str], steps: Sequence[BusinessFlowStep]) -> Optional[BusinessFlowStep]:
    """Return the step a package at ``position_status`` is waiting on.

    ``None`` means the package is not eligible for the flow yet or has
    already finished it.
    """

    return next((step for step in steps if step.from_status == position_status), None)


@dataclass
class AppliedTransition:
    package_id: UUID
    from_status: Optional[str]
    to_status: Optional[str]
    movement_at: datetime


@dataclass
class StepExecutionResult:
    transaction_id: UUID
    step: str
    applied: List[AppliedTransition] = field(default_factory=list)
    failures: List[PackageFailure] = field(default_factory=list)


class WorkflowEngine:
    """Validates and applies one flow step to a batch of claimed packages."""

    def __init__(self, session: Session, registry: Optional[FlowRegistry] = None) -> None:
        self._session = session
        self._registry = registry or get_flow_registry()

    def execute_step(
        self,
        transaction_id: UUID,
        step_code: str,
        package_ids: Sequence[UUID],
        payload: Optional[Mapping[str, Any]] = None,
        *,
        best_effort: bool = False,
    ) -> StepExecutionResult:
        """Move ``package_ids`` across ``step_code``.

        Each package is checked on its own against the authoritative package
        row. By default one failing package rejects the whole batch; with
        ``best_effort`` the valid subset is applied and the failures are
        returned alongside it.
        """

        transaction = self._session.get(PackageTransaction, transaction_id)
        if transaction is None:
            raise NotFoundError(f"Package transaction {transaction_id} not found")
        if transaction.status != TransactionStatus.IN_PROGRESS:
            raise StateError(f"Package transaction {transaction.code} is {transaction.status.value}; steps are closed")

        if not package_ids:
            raise ValidationError("At least one package id is required")
        if len(set(package_ids)) != len(package_ids):
            raise ValidationError("Package ids must be unique")

        flow = self._registry.get_flow_config(transaction.business_process_flow)
        step, handler = resolve_step(flow, step_code)
        step_payload = handler.parse_payload(payload)

        claims: Dict[UUID, PackageTransactionItem] = {item.package_id: item for item in transaction.packages}
        packages = self._lock_packages(package_ids)

        eligible: List[CargoPackage] = []
        failures: List[PackageFailure] = []
        for package_id in package_ids:
            package = packages.get(package_id)
            failure = self._check_package(package_id, package, claims, step)
            if failure is not None:
                failures.append(failure)
            else:
                eligible.append(package)

        if failures and (not best_effort or not eligible):
            logger.warning(
                "package_step_rejected",
                extra={
                    "transaction_id": str(transaction.id),
                    "step": step.code,
                    "failed": len(failures),
                    "requested": len(package_ids),
                    "best_effort": best_effort,
                },
            )
            raise StateError(
                f"Step '{step.code}' rejected for {len(failures)} of {len(package_ids)} package(s)",
                failures,
            )

        moved_at = datetime.now(timezone.utc)
        movement_payload = step_payload.model_dump(mode="json", exclude_none=True)
        result = StepExecutionResult(transaction_id=transaction.id, step=step.code, failures=failures)
        for package in eligible:
            previous_status = package.position_status
            package.position_status = step.to_status
            package.movement_at = moved_at
            handler.apply(package, step_payload)
            claims[package.id].position_status = step.to_status
            self._session.add(
                PackageMovement(
                    package_id=package.id,
                    transaction_id=transaction.id,
                    step_code=step.code,
                    from_status=previous_status,
                    to_status=step.to_status,
                    payload=movement_payload,
                    moved_at=moved_at,
                )
            )
            result.applied.append(AppliedTransition(package.id, previous_status, step.to_status, moved_at))
        self._session.flush()

        logger.info(
            "package_step_executed",
            extra={
                "transaction_id": str(transaction.id),
                "flow": flow.name,
                "step": step.code,
                "applied": len(result.applied),
                "failed": len(failures),
            },
        )
        return result

    def _lock_packages(self, package_ids: Sequence[UUID]) -> Dict[UUID, CargoPackage]:
        stmt = select(CargoPackage).where(CargoPackage.id.in_(package_ids))
        if self._session.get_bind().dialect.name != "sqlite":
            stmt = stmt.with_for_update()
        return {package.id: package for package in self._session.scalars(stmt)}

    @staticmethod
    def _check_package(
        package_id: UUID,
        package: Optional[CargoPackage],
        claims: Mapping[UUID, PackageTransactionItem],
        step: BusinessFlowStep,
    ) -> Optional[PackageFailure]:
        if package is None:
            return PackageFailure(str(package_id), "not_found", expected_status=step.from_status)
        if package_id not in claims:
            return PackageFailure(
                str(package_id),
                "not_claimed",
                current_status=package.position_status,
                expected_status=step.from_status,
            )
        if package.position_status != step.from_status:
            return PackageFailure(
                str(package_id),
                "status_mismatch",
                current_status=package.position_status,
                expected_status=step.from_status,
            )
        return None
