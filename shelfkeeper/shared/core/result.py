# 📄 File: shelfkeeper/shared/core/result.py
# 🧭 Purpose (Layman Explanation):
# A small "envelope" that every subscription operation hands back: either the thing you asked for,
# or a list of reasons why it could not be done, so callers always check before using the answer.
# 🧪 Purpose (Technical Summary):
# Tagged success/failure result type carrying typed errors, used by services and collaborators
# for expected failures instead of raising, plus mapping of error kinds onto the HTTP exception hierarchy.
# 🔗 Dependencies:
# dataclasses, enum, typing, shelfkeeper.shared.core.exceptions
# 🔄 Connected Modules / Calls From:
# Subscription services, payment and notification gateways, presentation dependencies

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    InternalServerError,
    NotFoundError,
    ResultValueError,
    ShelfKeeperException,
    ValidationError,
)

T = TypeVar("T")


class OperationErrorType(str, Enum):
    """Kinds of expected failure an operation can report."""
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND_ERROR = "not_found_error"
    FORBIDDEN_ERROR = "forbidden_error"
    CONFLICT_ERROR = "conflict_error"
    UNAUTHORIZED_ERROR = "unauthorized_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"
    INTERNAL_SERVER_ERROR = "internal_server_error"


_EXCEPTION_BY_ERROR_TYPE: Dict[OperationErrorType, Type[ShelfKeeperException]] = {
    OperationErrorType.VALIDATION_ERROR: ValidationError,
    OperationErrorType.NOT_FOUND_ERROR: NotFoundError,
    OperationErrorType.FORBIDDEN_ERROR: AuthorizationError,
    OperationErrorType.CONFLICT_ERROR: ConflictError,
    OperationErrorType.UNAUTHORIZED_ERROR: AuthenticationError,
    OperationErrorType.EXTERNAL_SERVICE_ERROR: ExternalServiceError,
    OperationErrorType.INTERNAL_SERVER_ERROR: InternalServerError,
}


@dataclass(frozen=True)
class OperationError:
    """A single human-readable failure reason and its kind."""
    message: str
    error_type: OperationErrorType

    def to_dict(self) -> Dict[str, str]:
        return {"message": self.message, "type": self.error_type.value}


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Outcome of a subscription or entitlement operation.

    A success may carry a value; a failure carries one or more errors and
    no value. Reading ``value`` on a failure raises ``ResultValueError``.
    """

    errors: List[OperationError] = field(default_factory=list)
    _value: Optional[T] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(errors=[], _value=value)

    @classmethod
    def failure(cls, message: str, error_type: OperationErrorType) -> "OperationResult[T]":
        return cls(errors=[OperationError(message=message, error_type=error_type)])

    @classmethod
    def from_errors(cls, errors: Sequence[OperationError]) -> "OperationResult[T]":
        if not errors:
            raise ValueError("A failed result needs at least one error")
        return cls(errors=list(errors))

    @property
    def is_success(self) -> bool:
        return not self.errors

    @property
    def is_failure(self) -> bool:
        return bool(self.errors)

    @property
    def value(self) -> T:
        if self.is_failure:
            raise ResultValueError(
                details={"errors": [error.to_dict() for error in self.errors]}
            )
        return self._value

    @property
    def first_error(self) -> Optional[OperationError]:
        return self.errors[0] if self.errors else None

    def has_error(self, error_type: OperationErrorType) -> bool:
        return any(error.error_type == error_type for error in self.errors)

    def to_exception(self) -> ShelfKeeperException:
        """Translate the first error into the matching HTTP-aware exception."""
        error = self.first_error
        if error is None:
            raise ValueError("A successful result has no exception")

        exception_class = _EXCEPTION_BY_ERROR_TYPE.get(error.error_type, InternalServerError)
        exception = exception_class(message=error.message)
        exception.details["errors"] = [item.to_dict() for item in self.errors]
        return exception

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_success": self.is_success,
            "errors": [error.to_dict() for error in self.errors],
        }
