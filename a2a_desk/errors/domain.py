"""Typed domain exceptions for result-envelope mapping.

These exceptions give the boundary a stronger contract than string
matching. The envelope layer catches DomainError subclasses and converts
them to a failed result carrying the matching registry code.

Usage:
    # In service layer
    raise DuplicateKeyError("Model provider", "model_key", "deepseek")

    # At the boundary
    return invoke(store.insert, params)
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    code = "E-4999"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Record lookup miss where existence is required."""

    code = "E-1001"

    def __init__(self, resource_type: str, identifier: object) -> None:
        super().__init__(f"{resource_type} '{identifier}' not found")
        self.resource_type = resource_type
        self.identifier = identifier


class ConflictError(DomainError):
    """Resource conflict (e.g., duplicate)."""

    code = "E-2001"


class DuplicateKeyError(ConflictError):
    """Natural key already present on another record of the same kind."""

    def __init__(self, resource_type: str, field: str, value: str) -> None:
        super().__init__(f"{resource_type} with {field} '{value}' already exists")
        self.resource_type = resource_type
        self.field = field
        self.value = value


class ValidationError(DomainError):
    """Validation failure."""

    code = "E-2002"


class InvalidInputError(ValidationError):
    """Empty credential, empty message list, or empty required text."""


class ClientError(DomainError):
    """Upstream LLM client could not be constructed."""

    code = "E-3001"


class TransportError(DomainError):
    """Base for HTTP and streaming transport failures.

    Attributes:
        detail: Underlying error text, or the response body for status errors.
    """

    code = "E-3002"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail


class TransportRequestError(TransportError):
    """Request could not be sent or the stream broke mid-read."""


class TransportStatusError(TransportError):
    """Upstream answered with a non-success HTTP status."""

    code = "E-3003"

    def __init__(self, status_code: int, body: str, prefix: str = "Request") -> None:
        super().__init__(
            f"{prefix} failed with status {status_code}: {body}",
            detail=body,
        )
        self.status_code = status_code
        self.body = body


class TransportBodyError(TransportError):
    """Response body could not be read or parsed."""

    code = "E-3004"


class StreamTimeoutError(DomainError):
    """Streaming exceeded the wall-clock ceiling."""

    code = "E-3005"


class StorageError(DomainError):
    """Lock acquisition or statement execution failed."""

    code = "E-4001"
