"""Audit logging service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from cfs_core.models.audit_log import AuditLog


class AuditService:
    """Persists audit entries and mirrors them to structured logs."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._logger = logging.getLogger("cfs_core.audit")

    def record(
        self,
        *,
        action: str,
        actor_id: Optional[str] = None,
        transaction_id: Optional[UUID] = None,
        packing_list_id: Optional[UUID] = None,
        container_id: Optional[UUID] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            action=action,
            occurred_at=datetime.now(timezone.utc),
            actor_id=actor_id,
            transaction_id=transaction_id,
            packing_list_id=packing_list_id,
            container_id=container_id,
            details=details or {},
        )
        self._session.add(entry)
        self._session.flush()

        self._logger.info(
            "audit_event",
            extra={
                "action": action,
                "actor_id": actor_id,
                "transaction_id": _optional_str(transaction_id),
                "packing_list_id": _optional_str(packing_list_id),
                "container_id": _optional_str(container_id),
            },
        )
        return entry


def _optional_str(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value is not None else None
