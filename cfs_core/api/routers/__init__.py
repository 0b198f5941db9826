"""Router registrations."""

from fastapi import APIRouter

from cfs_core.api.routers import (
    cargo_packages,
    containers,
    flows,
    health,
    package_transactions,
    packing_lists,
)


def get_api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router, tags=["health"])
    router.include_router(flows.router, prefix="/api/v1/flows", tags=["flows"])
    router.include_router(packing_lists.router, prefix="/api/v1/packing-lists", tags=["packing-lists"])
    router.include_router(cargo_packages.router, prefix="/api/v1/cargo-packages", tags=["cargo-packages"])
    router.include_router(containers.router, prefix="/api/v1/containers", tags=["containers"])
    router.include_router(
        package_transactions.router,
        prefix="/api/v1/package-transactions",
        tags=["package-transactions"],
    )
    return router
