"""
Tagged operation results.

Every public service operation returns an ``OperationResult`` instead of
raising.  A result is either a success carrying the payload, or one of the
failure kinds (not found, validation, conflict) carrying the error code and
an actionable message.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from property_kernel.exceptions import (
    ConflictError,
    EntityNotFoundError,
    InvalidFieldError,
    PropertyKernelError,
)

T = TypeVar("T")


class OperationStatus(str, Enum):
    """Outcome of a service operation."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Result of a service operation."""

    status: OperationStatus
    value: T | None = None
    error_code: str | None = None
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @classmethod
    def success(cls, value: T) -> OperationResult[T]:
        return cls(status=OperationStatus.SUCCESS, value=value)

    @classmethod
    def from_error(cls, exc: PropertyKernelError) -> OperationResult[T]:
        return cls(
            status=status_for(exc),
            error_code=exc.code,
            message=str(exc),
        )


def status_for(exc: PropertyKernelError) -> OperationStatus:
    """Map an exception category onto a result status."""
    if isinstance(exc, EntityNotFoundError):
        return OperationStatus.NOT_FOUND
    if isinstance(exc, ConflictError):
        return OperationStatus.CONFLICT
    return OperationStatus.VALIDATION_FAILED


MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a filtered listing.  ``page`` is zero-based."""

    items: tuple[T, ...]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.size)

    @property
    def has_next(self) -> bool:
        return (self.page + 1) * self.size < self.total


def check_paging(page: int, size: int) -> None:
    if page < 0:
        raise InvalidFieldError("page", "must not be negative")
    if not 1 <= size <= MAX_PAGE_SIZE:
        raise InvalidFieldError("size", f"must be between 1 and {MAX_PAGE_SIZE}")
