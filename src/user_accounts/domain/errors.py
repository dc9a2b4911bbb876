"""Error taxonomy and operation results."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar
from uuid import UUID

T = TypeVar("T")


class ErrorKind(Enum):
    """Failure categories surfaced to the HTTP layer."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UPLOAD = "upload"
    STORE = "store"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UPLOAD: 502,
    ErrorKind.STORE: 500,
}


class UserAccountsError(Exception):
    """Base error raised by stores and the lifecycle."""

    kind = ErrorKind.STORE
    default_message = "Storage error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(UserAccountsError):
    """Missing or malformed input."""

    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"


class UnauthorizedError(UserAccountsError):
    """Confirmation secret did not match."""

    kind = ErrorKind.UNAUTHORIZED
    default_message = "Your password is incorrect"


class NotFoundError(UserAccountsError):
    """No record matched the requested id."""

    kind = ErrorKind.NOT_FOUND
    default_message = "User not found"


class ConflictError(UserAccountsError):
    """A unique field already exists."""

    kind = ErrorKind.CONFLICT
    default_message = "User already exists"


class UploadError(UserAccountsError):
    """The blob store failed to store or remove an asset."""

    kind = ErrorKind.UPLOAD
    default_message = "Photo storage failed"


class StoreError(UserAccountsError):
    """The record store failed."""

    kind = ErrorKind.STORE


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of a lifecycle operation."""

    operation: str
    value: T | None = None
    error: ErrorKind | None = None
    message: str = ""
    user_id: UUID | None = None
    warnings: tuple[str, ...] = ()
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(
        cls,
        operation: str,
        value: T | None = None,
        user_id: UUID | None = None,
        warnings: tuple[str, ...] = (),
    ) -> "OperationResult[T]":
        return cls(
            operation=operation, value=value, user_id=user_id, warnings=warnings
        )

    @classmethod
    def failure(
        cls,
        operation: str,
        exc: UserAccountsError,
        user_id: UUID | None = None,
        warnings: tuple[str, ...] = (),
    ) -> "OperationResult[T]":
        cause = exc.__cause__
        return cls(
            operation=operation,
            error=exc.kind,
            message=exc.message,
            user_id=user_id,
            warnings=warnings,
            detail=f"{type(cause).__name__}: {cause}" if cause else None,
        )
