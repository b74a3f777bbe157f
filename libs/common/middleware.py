"""Request tracing middleware for the orders API.

Every request gets an id (taken from ``X-Request-ID`` or generated) that is
bound to the logging context and echoed back on the response. Requests that
spend longer than the stock lock timeout are flagged as slow, since that
usually means they queued behind other orders for the same stock.

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app)
"""
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.config import get_settings
from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
UNTRACED_PATHS = frozenset({"/health"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, slow_request_ms: float):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    def _log_outcome(self, status_code: int, duration_ms: float) -> None:
        fields = {"status_code": status_code, "duration_ms": round(duration_ms, 2)}
        if status_code >= 500:
            logger.error("Request failed", extra={"extra_fields": fields})
        elif status_code >= 400:
            logger.warning("Request rejected", extra={"extra_fields": fields})
        elif duration_ms > self.slow_request_ms:
            logger.warning("Slow request", extra={"extra_fields": fields})
        else:
            logger.info("Request completed", extra={"extra_fields": fields})

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            path=request.url.path,
            method=request.method,
        )
        traced = request.url.path not in UNTRACED_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error while serving request",
                extra={
                    "extra_fields": {
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2)
                    }
                },
            )
            raise
        else:
            if traced:
                self._log_outcome(
                    response.status_code, (time.perf_counter() - started) * 1000
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_request_context()


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install request tracing on ``app``."""
    configure_logging()
    app.add_middleware(
        RequestContextMiddleware,
        slow_request_ms=get_settings().ORDER_LOCK_TIMEOUT_MS,
    )
