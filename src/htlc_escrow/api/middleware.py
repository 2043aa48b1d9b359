"""HTTP middleware for the read-only escrow index.

Registered by setup_middleware; the last one added is the outermost:
    RequestIDMiddleware     X-Request-ID echoed back and bound into log context
    ErrorHandlerMiddleware  SwapError subclasses mapped to JSON error bodies
    CORSMiddleware          GET-only cross-origin access for dashboards
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from htlc_escrow.domain.exceptions import EscrowNotFoundError, SwapError

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "message": message})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Correlate every log entry of a request with one id."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn escrow errors into `{"error": code, "message": ...}` bodies.

    Unknown escrows are 404, any other SwapError (bad filters, bad ids) is
    400, and everything else is a 500 with no internals leaked.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except EscrowNotFoundError as exc:
            logger.info("api.escrow_not_found", escrow=exc.address)
            return _error_response(404, exc.code, exc.message)
        except SwapError as exc:
            logger.warning("api.rejected", code=exc.code, error=exc.message)
            return _error_response(400, exc.code, exc.message)
        except Exception:
            logger.exception("api.unhandled_error")
            return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


def setup_middleware(app: FastAPI) -> None:
    """Install CORS, error handling and request ids, outermost last."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIDMiddleware)
