from fastapi import Request
from fastapi.exceptions import RequestValidationError, HTTPException
from starlette.responses import JSONResponse
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY

from CatalogSync.exceptions import (
    CatalogSyncException,
    get_http_status_code,
    log_exception,
)
from CatalogSync.schemas.response import ResponseSchema


def register_exception_handlers(app):
    """Register all exception handlers for the FastAPI app."""

    @app.exception_handler(CatalogSyncException)
    async def catalog_sync_exception_handler(request: Request, exc: CatalogSyncException):
        """Render every CatalogSync exception as an error ResponseSchema."""
        log_exception(exc, context=f"{request.method} {request.url.path}")

        status_code = get_http_status_code(exc)

        return JSONResponse(
            status_code=status_code,
            content=ResponseSchema(
                status="error", message=exc.message, data=exc.details if exc.details else None
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        messages = []
        for error in exc.errors():
            loc = error.get("loc")
            msg = error.get("msg")
            typ = error.get("type")
            messages.append(f"Error in {loc}: {msg} ({typ})")

        return JSONResponse(
            status_code=HTTP_422_UNPROCESSABLE_ENTITY,
            content=ResponseSchema(status="error", message="Validation error", data=messages).model_dump(),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=ResponseSchema(
                status="error", message=exc.detail if isinstance(exc.detail, str) else str(exc.detail), data=None
            ).model_dump(),
        )
