"""HTTP middleware: correlation ids and API key authentication."""

import hmac
import uuid
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from core.observability.logging import get_logger, with_correlation


logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"
API_KEY_HEADER = "X-API-KEY"

PUBLIC_PATHS = (
    "/",
    "/health",
    "/ready",
    "/live",
    "/metrics",
    "/docs",
    "/redoc",
    "/openapi.json",
)


def new_correlation_id() -> str:
    return uuid.uuid4().hex[:12]


def problem_response(status: int, title: str, detail: str, request: Request) -> JSONResponse:
    """Problem-details body shared by middleware and exception handlers."""
    return JSONResponse(
        status_code=status,
        content={
            "type": f"https://httpstatuses.io/{status}",
            "title": title,
            "status": status,
            "detail": detail,
            "instance": request.url.path,
            "trace_id": getattr(request.state, "correlation_id", None),
        },
        media_type="application/problem+json",
    )


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Read or assign X-Correlation-Id and bind it to the logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or new_correlation_id()
        request.state.correlation_id = correlation_id

        with with_correlation(
            correlation_id=correlation_id,
            request_method=request.method,
            request_path=request.url.path,
        ):
            response = await call_next(request)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Require X-API-KEY on every non-public path.

    A server without a configured key answers 500 rather than letting
    requests through.
    """

    def __init__(self, app, api_key: Optional[str], public_paths: Iterable[str] = PUBLIC_PATHS):
        super().__init__(app)
        self.api_key = api_key
        self.public_paths = set(public_paths)

    def is_public(self, path: str) -> bool:
        return path in self.public_paths or path.startswith("/docs/")

    async def dispatch(self, request: Request, call_next) -> Response:
        if self.is_public(request.url.path):
            return await call_next(request)

        if not self.api_key:
            logger.error("API key is not configured on the server")
            return problem_response(
                500, "Server configuration error", "API key is not configured", request
            )

        provided = request.headers.get(API_KEY_HEADER)
        if not provided:
            logger.warning("Request rejected: missing API key")
            return problem_response(401, "Unauthorized", "API key is missing", request)

        if not hmac.compare_digest(provided.encode("utf-8"), self.api_key.encode("utf-8")):
            logger.warning("Request rejected: invalid API key")
            return problem_response(401, "Unauthorized", "API key is invalid", request)

        return await call_next(request)
