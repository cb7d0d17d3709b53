"""Error taxonomy for sync outcomes."""

from __future__ import annotations

from enum import Enum

import httpx
from pydantic import ValidationError as PydanticValidationError

from studysync.adapters.remote_store.client import RemoteStoreError
from studysync.adapters.remote_store.sync.constants import (
    TRANSIENT_STATUS_CODES,
    VALIDATION_STATUS_CODES,
)


class ErrorKind(str, Enum):
    DUPLICATE = "duplicate"
    TRANSIENT_NETWORK = "transient_network"
    VALIDATION = "validation"
    UNKNOWN = "unknown"
    ABORTED = "aborted"


class SyncError(Exception):
    """Base class for classified sync failures."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class DuplicateError(SyncError):
    kind = ErrorKind.DUPLICATE

    def __init__(self, item_type: str, label: str) -> None:
        noun = item_type.replace("_", " ")
        super().__init__(f"Duplicate {noun}: {label!r} already exists in the remote store")
        self.item_type = item_type
        self.label = label


class TransientNetworkError(SyncError):
    kind = ErrorKind.TRANSIENT_NETWORK


class ValidationError(SyncError):
    kind = ErrorKind.VALIDATION


class UnknownError(SyncError):
    kind = ErrorKind.UNKNOWN


class SyncAbortedError(SyncError):
    kind = ErrorKind.ABORTED

    def __init__(self, message: str = "Sync aborted") -> None:
        super().__init__(message)


_ERROR_TYPES: dict[ErrorKind, type[SyncError]] = {
    ErrorKind.TRANSIENT_NETWORK: TransientNetworkError,
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.UNKNOWN: UnknownError,
}


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, SyncError):
        return exc.kind
    if isinstance(exc, RemoteStoreError):
        status = exc.status_code
        if status is not None and (status in TRANSIENT_STATUS_CODES or status >= 500):
            return ErrorKind.TRANSIENT_NETWORK
        if status in VALIDATION_STATUS_CODES:
            return ErrorKind.VALIDATION
        return ErrorKind.UNKNOWN
    if isinstance(exc, httpx.TransportError | TimeoutError | ConnectionError):
        return ErrorKind.TRANSIENT_NETWORK
    if isinstance(exc, PydanticValidationError):
        return ErrorKind.VALIDATION
    return ErrorKind.UNKNOWN


def is_retryable(exc: BaseException) -> bool:
    return classify_error(exc) is ErrorKind.TRANSIENT_NETWORK


def to_sync_error(exc: BaseException) -> SyncError:
    """Wrap a raw exception in its taxonomy class, keeping the original as the cause."""
    if isinstance(exc, SyncError):
        return exc
    kind = classify_error(exc)
    message = str(exc) or type(exc).__name__
    wrapped = _ERROR_TYPES[kind](message)
    wrapped.__cause__ = exc
    return wrapped
