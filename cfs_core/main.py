"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cfs_core.api.error_handlers import register_exception_handlers
from cfs_core.api.routers import get_api_router
from cfs_core.core.config import AppSettings, get_settings
from cfs_core.core.logging import configure_logging
from cfs_core.workflow_engine.registry import HttpFlowRegistry, get_flow_registry, set_flow_registry

logger = logging.getLogger("cfs_core.main")


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: D401
    """Application lifespan context for startup/shutdown hooks."""

    registry = get_flow_registry()
    logger.info("flow_registry_ready", extra={"registry": type(registry).__name__})

    yield

    if isinstance(registry, HttpFlowRegistry):
        registry.close()
        set_flow_registry(None)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Application factory."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="CFS Package Transactions",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    app.include_router(get_api_router())
    return app
