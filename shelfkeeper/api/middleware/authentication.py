# 📄 File: shelfkeeper/api/middleware/authentication.py
# 🧭 Purpose (Layman Explanation):
# A security guard that checks every request carries a valid sign-in token before it reaches
# the subscription endpoints. Health checks, docs and Stripe's callbacks are let through.
# 🧪 Purpose (Technical Summary):
# Starlette middleware validating bearer JWTs through shelfkeeper.shared.core.security and
# placing the caller's id, email and roles on request.state for get_current_user().
# 🔗 Dependencies:
# Starlette BaseHTTPMiddleware, python-jose (via security), shelfkeeper.shared.utils.logging
# 🔄 Connected Modules / Calls From:
# shelfkeeper.main (middleware registration), shared.core.dependencies.get_current_user

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from shelfkeeper.shared.core.exceptions import AuthenticationError
from shelfkeeper.shared.core.security import verify_token
from shelfkeeper.shared.utils.logging import user_id_var

logger = logging.getLogger(__name__)

PUBLIC_PATHS = (
    "/",
    "/health",
    "/health/ready",
    "/api/v1/health",
    "/api/v1/health/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/api/v1/stripe/webhooks",
)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    JWT authentication middleware.

    - Reads the token from the Authorization header (Bearer) or X-Access-Token
    - Rejects protected requests without a valid token with a 401 envelope
    - Injects user_id, user_email and user_roles into request.state
    """

    def __init__(self, app: ASGIApp, public_paths: tuple = PUBLIC_PATHS):
        super().__init__(app)
        self.public_paths = public_paths

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS" or self._is_public_path(request.url.path):
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            return self._create_authentication_error("No authentication token provided")

        try:
            token_data = verify_token(token)
        except AuthenticationError as e:
            return self._create_authentication_error(e.message)

        request.state.user_id = token_data.user_id
        request.state.user_email = token_data.email
        request.state.user_roles = token_data.roles
        user_id_var.set(token_data.user_id)

        return await call_next(request)

    @staticmethod
    def _extract_token(request: Request) -> Optional[str]:
        authorization = request.headers.get("Authorization")
        if authorization:
            scheme, _, token = authorization.partition(" ")
            if scheme.lower() == "bearer" and token:
                return token.strip()

        return request.headers.get("X-Access-Token")

    def _is_public_path(self, path: str) -> bool:
        if path in self.public_paths:
            return True
        return any(path.startswith(public_path + "/") for public_path in self.public_paths if public_path != "/")

    @staticmethod
    def _create_authentication_error(message: str) -> JSONResponse:
        logger.info(f"Rejected unauthenticated request: {message}")
        return JSONResponse(
            status_code=401,
            content={
                "error": {
                    "code": "AUTHENTICATION_ERROR",
                    "message": message,
                    "details": {"auth_methods": ["Bearer token", "X-Access-Token header"]},
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
            },
            headers={"WWW-Authenticate": "Bearer"},
        )
