"""Liveness and readiness endpoints for the package transaction service."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from cfs_core.api.dependencies import get_db_session, get_registry
from cfs_core.workflow_engine.registry import FlowRegistry

router = APIRouter()


@router.get("/healthz", summary="Liveness probe")
def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", summary="Readiness probe")
def readiness_check(
    session: Session = Depends(get_db_session),
    registry: FlowRegistry = Depends(get_registry),
) -> dict[str, str]:
    session.execute(text("SELECT 1"))
    return {"status": "ready", "database": session.get_bind().dialect.name, "flow_registry": type(registry).__name__}
