"""Explicit success/failure results for lifecycle operations.

Use cases raise ``DomainError`` subclasses for expected business-rule
violations.  The ``returns_result`` decorator sits at the boundary of each
public operation and turns them, together with persistence failures, into a
failed ``OperationResult`` so callers have a single failure path.

The wrapped call runs inside ``transaction.atomic``: a failed result never
leaves a partial write behind.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

import structlog
from django.db import DatabaseError, transaction
from rest_framework import status

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    VALIDATION = "VALIDATION"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    PAYMENT_PROVIDER_FAILURE = "PAYMENT_PROVIDER_FAILURE"


HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ILLEGAL_TRANSITION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INSUFFICIENT_STOCK: status.HTTP_409_CONFLICT,
    ErrorCode.PAYMENT_PROVIDER_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PERSISTENCE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class DomainError(Exception):
    """Base class for expected business-rule violations."""

    code: ErrorCode = ErrorCode.VALIDATION

    def __init__(self, message: str = "", code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.__class__.__name__
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


class NotFound(DomainError):
    """The referenced record does not exist."""

    code = ErrorCode.NOT_FOUND


class IllegalTransition(DomainError):
    """The requested state change is not allowed from the current state."""

    code = ErrorCode.ILLEGAL_TRANSITION


class PersistenceFailure(DomainError):
    """The data store is unreachable or rejected the write."""

    code = ErrorCode.PERSISTENCE_FAILURE


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of a lifecycle operation."""

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, value: T) -> OperationResult[T]:
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: DomainError) -> OperationResult[T]:
        return cls(success=False, error=error.message, code=error.code)

    @property
    def http_status(self) -> int:
        if self.success:
            return status.HTTP_200_OK
        return HTTP_STATUS_BY_CODE.get(self.code, status.HTTP_400_BAD_REQUEST)

    def unwrap(self) -> T:
        """Return the value or raise the error carried by a failed result."""
        if not self.success:
            raise DomainError(self.error or "", code=self.code)
        return self.value


def returns_result(func: Callable[..., T]) -> Callable[..., OperationResult[T]]:
    """Run *func* atomically and convert its failures into a result."""

    atomic_func = transaction.atomic(func)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> OperationResult[T]:
        try:
            return OperationResult.ok(atomic_func(*args, **kwargs))
        except DomainError as exc:
            logger.info(
                "operation.rejected",
                operation=func.__qualname__,
                code=exc.code.value,
                reason=exc.message,
            )
            return OperationResult.fail(exc)
        except DatabaseError as exc:
            logger.exception("operation.persistence_failed", operation=func.__qualname__)
            return OperationResult.fail(
                PersistenceFailure(f"Persistence failure: {exc.__class__.__name__}.")
            )

    return wrapper


def error_response(result: OperationResult) -> "Response":
    """DRF response for a failed result: ``{"detail", "code"}`` + mapped status."""
    from rest_framework.response import Response

    return Response(
        {"detail": result.error, "code": result.code.value if result.code else None},
        status=result.http_status,
    )
