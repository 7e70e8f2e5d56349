"""
Security utilities for bearer token validation.
Tokens are issued by the identity service; this service only verifies them
and trusts the subject they carry.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from ..config.settings import get_settings
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class TokenData(BaseModel):
    """Token payload data structure"""
    user_id: str
    email: Optional[str] = None
    roles: List[str] = ["user"]
    exp: Optional[int] = None


class SecurityManager:
    """
    Verifies and (for tooling and tests) issues HS/RS signed access tokens.
    """

    def __init__(self):
        self.settings = get_settings()
        self.algorithm = self.settings.JWT_ALGORITHM
        self.secret_key = self.settings.JWT_SECRET_KEY

    def create_access_token(
        self,
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create JWT access token with user data and expiration.

        Args:
            data: Token payload data, ``sub`` holds the user id
            expires_delta: Custom expiration time

        Returns:
            str: Encoded JWT token
        """
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=30))
        to_encode.update({"exp": expire, "iat": now, "type": "access"})

        encoded_jwt = jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"Access token created for user: {data.get('sub')}")
        return encoded_jwt

    def verify_token(self, token: str) -> TokenData:
        """
        Verify and decode an access token.

        Raises:
            AuthenticationError: If the token is invalid, expired or has no subject
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"JWT validation failed: {e}")
            raise AuthenticationError("Invalid or expired token")

        if payload.get("type", "access") != "access":
            logger.warning(f"Token type mismatch. Got: {payload.get('type')}")
            raise AuthenticationError("Invalid token type")

        user_id = payload.get("sub")
        if not user_id:
            logger.warning("Token missing subject (user_id)")
            raise AuthenticationError("Token missing subject")

        roles = payload.get("roles") or [payload.get("role", "user")]
        return TokenData(
            user_id=str(user_id),
            email=payload.get("email"),
            roles=list(roles),
            exp=payload.get("exp"),
        )


@lru_cache()
def get_security_manager() -> SecurityManager:
    return SecurityManager()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    return get_security_manager().create_access_token(data, expires_delta)


def verify_token(token: str) -> TokenData:
    """Verify JWT access token."""
    return get_security_manager().verify_token(token)
