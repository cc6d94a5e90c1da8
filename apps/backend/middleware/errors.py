import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from apps.backend.services.core_service import CoreError, NotFoundError
from apps.backend.utils.envelope import ok, error

log = logging.getLogger("epunch.errors")


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def install_error_handlers(app: FastAPI) -> None:
    """
    Maps every failure onto the {data, error} envelope.
    A missing resource is an expected outcome and comes back as null data.
    """

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        log.info("%s %s -> not found: %s", request.method, request.url.path, exc.message)
        return ok(None)

    @app.exception_handler(CoreError)
    async def _core_error(request: Request, exc: CoreError):
        if exc.status_code >= 500:
            log.error("%s %s -> %s", request.method, request.url.path, exc.message)
        else:
            log.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
        return error(exc.message, code=exc.code, status=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return error(_validation_message(exc), code="validation_error", status=400)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return error(str(exc.detail), code="http_error", status=exc.status_code)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error("Internal server error", code="internal_error", status=500)
