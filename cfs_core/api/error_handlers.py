"""Exception handlers for the FastAPI app."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cfs_core.services.errors import (
    ConflictError,
    FlowRegistryError,
    NotFoundError,
    PreconditionError,
    StateError,
    StepNotImplementedError,
    ValidationError,
)

logger = logging.getLogger("cfs_core.api.errors")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StepNotImplementedError)
    async def step_not_implemented_handler(request: Request, exc: StepNotImplementedError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            content={"detail": str(exc), "step": exc.step_code},
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(PreconditionError)
    async def precondition_handler(request: Request, exc: PreconditionError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=status.HTTP_412_PRECONDITION_FAILED, content={"detail": str(exc)})

    @app.exception_handler(StateError)
    async def state_handler(request: Request, exc: StateError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "failures": [failure.as_dict() for failure in exc.failures]},
        )

    @app.exception_handler(FlowRegistryError)
    async def flow_registry_handler(request: Request, exc: FlowRegistryError) -> JSONResponse:  # noqa: WPS430
        logger.error("flow_registry_unavailable", extra={"path": request.url.path, "error": str(exc)})
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})
