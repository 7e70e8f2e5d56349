"""
Common FastAPI dependencies for ShelfKeeper.
Provides the authenticated caller and role checks.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import Depends, Request

from .exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


class CurrentUser:
    """User information extracted from the bearer token."""

    def __init__(
        self,
        user_id: str,
        email: Optional[str] = None,
        roles: Optional[List[str]] = None,
    ):
        self.user_id = user_id
        self.email = email
        self.roles = roles or ["user"]

    @property
    def user_uuid(self) -> UUID:
        """The subject as a UUID; subscriptions are keyed by it."""
        try:
            return UUID(str(self.user_id))
        except ValueError:
            raise AuthenticationError("Token subject is not a valid user id")

    def has_role(self, role: str) -> bool:
        """Check if user has specific role."""
        return role in self.roles

    def is_admin(self) -> bool:
        """Check if user has admin privileges."""
        return self.has_role("admin") or self.has_role("super_admin")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "roles": self.roles,
        }


async def get_current_user(request: Request) -> CurrentUser:
    """
    Get current authenticated user from request state.
    This dependency assumes AuthenticationMiddleware has already validated the token.

    Raises:
        AuthenticationError: If user is not authenticated
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        logger.warning("User ID not found in request state")
        raise AuthenticationError("User not authenticated")

    current_user = CurrentUser(
        user_id=user_id,
        email=getattr(request.state, "user_email", None),
        roles=getattr(request.state, "user_roles", ["user"]),
    )
    logger.debug(f"Current user retrieved: {user_id}")
    return current_user


async def get_current_admin_user(
    current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """
    Get current user with admin privileges.

    Raises:
        AuthorizationError: If user is not an admin
    """
    if not current_user.is_admin():
        logger.warning(f"Non-admin user attempted admin access: {current_user.user_id}")
        raise AuthorizationError(
            "Admin privileges required for this action",
            required_permission="admin"
        )

    return current_user
