"""
Core primitives package for ShelfKeeper.
Provides the exception hierarchy, operation results, clock and request dependencies.
"""

from .exceptions import (
    ShelfKeeperException,
    AuthenticationError,
    AuthorizationError,
    ValidationError,
    NotFoundError,
    ConflictError,
    ConcurrencyError,
    ExternalServiceError,
    DatabaseError,
    TransactionError,
)
from .result import OperationError, OperationErrorType, OperationResult
from .clock import Clock, SystemClock

__all__ = [
    "ShelfKeeperException",
    "AuthenticationError",
    "AuthorizationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ConcurrencyError",
    "ExternalServiceError",
    "DatabaseError",
    "TransactionError",
    "OperationError",
    "OperationErrorType",
    "OperationResult",
    "Clock",
    "SystemClock",
]
