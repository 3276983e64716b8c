from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.services.exceptions import (
    ConflictError,
    DomainValidationError,
    EmptyCartError,
    PersistenceError,
    ResourceNotFoundError,
    ServiceError,
)


def _body(exc: ServiceError) -> dict:
    return {"detail": exc.detail, "code": exc.code}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ResourceNotFoundError)
    async def handle_not_found(_: Request, exc: ResourceNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=_body(exc))

    @app.exception_handler(DomainValidationError)
    async def handle_validation(_: Request, exc: DomainValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content=_body(exc))

    @app.exception_handler(ConflictError)
    async def handle_conflict(_: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content=_body(exc))

    @app.exception_handler(EmptyCartError)
    async def handle_empty_cart(_: Request, exc: EmptyCartError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_body(exc))

    @app.exception_handler(PersistenceError)
    async def handle_persistence(_: Request, exc: PersistenceError) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={**_body(exc), "retryable": True},
            headers={"Retry-After": "1"},
        )

    @app.exception_handler(ServiceError)
    async def handle_service_error(_: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_body(exc))
