"""
Service Results

Every booking and payment operation returns a ServiceResult instead of
raising. The API layer turns the error kind into an HTTP status.
"""

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STATE = "state"
    TRANSIENT_STORE = "transient_store"


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.TRANSIENT_STORE


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "ServiceResult[T]":
        return cls(error=ServiceError(kind, message))

    @classmethod
    def from_error(cls, error: ServiceError) -> "ServiceResult[T]":
        return cls(error=error)


def validation_error(message: str) -> ServiceError:
    return ServiceError(ErrorKind.VALIDATION, message)


def not_found(message: str) -> ServiceError:
    return ServiceError(ErrorKind.NOT_FOUND, message)


def conflict(message: str) -> ServiceError:
    return ServiceError(ErrorKind.CONFLICT, message)


def state_error(message: str) -> ServiceError:
    return ServiceError(ErrorKind.STATE, message)


def transient_store_error(message: str) -> ServiceError:
    return ServiceError(ErrorKind.TRANSIENT_STORE, message)
