"""Dependency injection helpers for FastAPI routes."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from cfs_core.core.database import get_session
from cfs_core.events_engine import get_event_dispatcher
from cfs_core.services.containers import ContainerService
from cfs_core.services.packing_lists import PackingListService
from cfs_core.services.transactions import PackageTransactionService
from cfs_core.workflow_engine import WorkflowEngine, get_flow_registry
from cfs_core.workflow_engine.registry import FlowRegistry


def get_db_session() -> Session:
    yield from get_session()


def get_registry() -> FlowRegistry:
    return get_flow_registry()


def get_transaction_service(
    session: Session = Depends(get_db_session),
    registry: FlowRegistry = Depends(get_registry),
) -> PackageTransactionService:
    return PackageTransactionService(session, registry=registry, event_dispatcher=get_event_dispatcher())


def get_workflow_engine(
    session: Session = Depends(get_db_session),
    registry: FlowRegistry = Depends(get_registry),
) -> WorkflowEngine:
    return WorkflowEngine(session, registry=registry)


def get_packing_list_service(session: Session = Depends(get_db_session)) -> PackingListService:
    return PackingListService(session)


def get_container_service(
    session: Session = Depends(get_db_session),
    registry: FlowRegistry = Depends(get_registry),
) -> ContainerService:
    return ContainerService(session, registry=registry, event_dispatcher=get_event_dispatcher())
