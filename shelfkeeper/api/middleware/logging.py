# 📄 File: shelfkeeper/api/middleware/logging.py
# 🧭 Purpose (Layman Explanation):
# Keeps a diary of every request: what was asked, how it ended and how long it took, and
# stamps each one with a tracking number so related log lines can be found together.
# 🧪 Purpose (Technical Summary):
# Request logging middleware binding a request id into the logging contextvars for the
# duration of the request, logging method/path/status/duration and echoing X-Request-ID.
# 🔗 Dependencies:
# Starlette BaseHTTPMiddleware, shelfkeeper.shared.utils.logging (log_context)
# 🔄 Connected Modules / Calls From:
# shelfkeeper.main (outermost middleware), error handlers (request id in envelopes)

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from shelfkeeper.shared.utils.logging import log_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = frozenset({"/health", "/health/ready"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware.

    Slow requests (over ``slow_request_threshold`` seconds) are logged as warnings.
    """

    def __init__(self, app: ASGIApp, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        with log_context(request_id=request_id):
            start_time = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception:
                duration = time.perf_counter() - start_time
                logger.error(
                    f"{request.method} {request.url.path} failed after {duration:.3f}s",
                    exc_info=True,
                )
                raise

            duration = time.perf_counter() - start_time
            self._log_response(request, response.status_code, duration)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _log_response(self, request: Request, status_code: int, duration: float) -> None:
        message = f"{request.method} {request.url.path} -> {status_code} in {duration:.3f}s"
        if status_code >= 500:
            logger.error(message)
        elif duration > self.slow_request_threshold:
            logger.warning(f"Slow request: {message}")
        elif request.url.path in QUIET_PATHS:
            logger.debug(message)
        else:
            logger.info(message)
