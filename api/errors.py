"""Map domain errors to problem-details responses.

    InvalidTransition, DuplicateOrderNumber, UnknownEnumValue -> 409
    OrderNotFound                                          -> 404
    DomainValidationError, request validation              -> 400
    IntegrationTransportError                              -> 502
    anything else                                          -> 500
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.middleware import problem_response
from core.errors import (
    DomainValidationError,
    DuplicateOrderNumber,
    IntegrationTransportError,
    InvalidTransition,
    OrderNotFound,
    UnknownEnumValue,
)
from core.observability.logging import get_logger


logger = get_logger(__name__)


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Install the exception handlers on ``app``."""

    async def conflict(request: Request, exc: Exception):
        logger.warning(f"Conflict: {exc}")
        return problem_response(409, "Conflict", str(exc), request)

    async def not_found(request: Request, exc: OrderNotFound):
        return problem_response(404, "Not Found", str(exc), request)

    async def bad_request(request: Request, exc: DomainValidationError):
        logger.warning(f"Invalid request: {exc}")
        return problem_response(400, "Bad Request", str(exc), request)

    async def validation_failed(request: Request, exc: RequestValidationError):
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return problem_response(400, "Validation failed", errors, request)

    async def http_error(request: Request, exc: StarletteHTTPException):
        return problem_response(exc.status_code, "Error", str(exc.detail), request)

    async def transport_failed(request: Request, exc: IntegrationTransportError):
        logger.error(f"ERP transport failure: {exc}")
        return problem_response(502, "ERP unavailable", str(exc), request)

    async def unhandled(request: Request, exc: Exception):
        logger.exception(f"Unhandled error: {type(exc).__name__}: {exc}")
        detail = str(exc) if debug else "An unexpected error occurred"
        return problem_response(500, "Internal Server Error", detail, request)

    for exc_class in (InvalidTransition, DuplicateOrderNumber, UnknownEnumValue):
        app.add_exception_handler(exc_class, conflict)
    app.add_exception_handler(OrderNotFound, not_found)
    app.add_exception_handler(DomainValidationError, bad_request)
    app.add_exception_handler(RequestValidationError, validation_failed)
    app.add_exception_handler(StarletteHTTPException, http_error)
    app.add_exception_handler(IntegrationTransportError, transport_failed)
    app.add_exception_handler(Exception, unhandled)
