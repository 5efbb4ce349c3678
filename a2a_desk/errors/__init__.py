"""Error handling framework for A2A Desk.

This package provides:
- Typed domain exceptions raised by the store, composer and relay
- Error code registry with E-XXXX format codes
"""

from a2a_desk.errors.domain import (
    ClientError,
    ConflictError,
    DomainError,
    DuplicateKeyError,
    InvalidInputError,
    NotFoundError,
    StorageError,
    StreamTimeoutError,
    TransportBodyError,
    TransportError,
    TransportRequestError,
    TransportStatusError,
    ValidationError,
)
from a2a_desk.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
)

__all__ = [
    # Domain
    "DomainError",
    "NotFoundError",
    "ConflictError",
    "DuplicateKeyError",
    "ValidationError",
    "InvalidInputError",
    "ClientError",
    "TransportError",
    "TransportRequestError",
    "TransportStatusError",
    "TransportBodyError",
    "StreamTimeoutError",
    "StorageError",
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "get_error",
]
