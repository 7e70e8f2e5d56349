# 📄 File: shelfkeeper/api/middleware/error_handling.py
# 🧭 Purpose (Layman Explanation):
# Catches any error nobody else handled and turns it into a tidy, consistent error message
# instead of a crash page.
# 🧪 Purpose (Technical Summary):
# Last-resort error middleware converting uncaught exceptions into the shared error envelope
# ({"error": {code, message, details, timestamp, request_id}}) and the envelope builder used
# by the exception handlers registered in shelfkeeper.main.
# 🔗 Dependencies:
# Starlette BaseHTTPMiddleware, shelfkeeper.shared.core.exceptions, settings
# 🔄 Connected Modules / Calls From:
# shelfkeeper.main (middleware registration and exception handlers)

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from shelfkeeper.shared.config.settings import get_settings
from shelfkeeper.shared.core.exceptions import ShelfKeeperException

logger = logging.getLogger(__name__)


def error_envelope(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Build the JSON error body every failure response shares."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "request_id": getattr(request.state, "request_id", None),
            }
        },
    )


def exception_envelope(request: Request, exc: ShelfKeeperException) -> JSONResponse:
    return error_envelope(request, exc.status_code, exc.error_code, exc.message, exc.details)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Converts exceptions that escaped the exception handlers into a 500 envelope.
    Details are only included outside production.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.settings = get_settings()

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except ShelfKeeperException as exc:
            logger.warning(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
            return exception_envelope(request, exc)
        except Exception as exc:
            logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
            details = {} if self.settings.is_production else {"exception": type(exc).__name__, "detail": str(exc)}
            return error_envelope(request, 500, "INTERNAL_SERVER_ERROR", "Internal server error", details)
