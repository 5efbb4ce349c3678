"""Error code registry with E-XXXX format codes.

Categories:
- E-1xxx: Lookup errors
- E-2xxx: Validation errors
- E-3xxx: Upstream (LLM / A2A) errors
- E-4xxx: System/internal errors

Each error includes a code, title, and remediation text shown next to the
failure message in the result envelope.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    LOOKUP = "lookup"  # E-1xxx
    VALIDATION = "validation"  # E-2xxx
    UPSTREAM = "upstream"  # E-3xxx
    SYSTEM = "system"  # E-4xxx


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        remediation: Action user should take.
        is_retryable: Whether the operation can be retried without user action.
    """

    code: str
    category: ErrorCategory
    title: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    "E-1001": ErrorCode(
        code="E-1001",
        category=ErrorCategory.LOOKUP,
        title="Record Not Found",
        remediation="Refresh the list; the record may have been deleted.",
    ),
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.VALIDATION,
        title="Duplicate Key",
        remediation="Choose a different key or URL, or edit the existing record.",
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.VALIDATION,
        title="Invalid Input",
        remediation="Fill in the required fields and retry.",
    ),
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.UPSTREAM,
        title="Client Construction Failed",
        remediation="Check the model provider URL and API key.",
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.UPSTREAM,
        title="Request Failed",
        remediation="Check network connectivity and the server URL.",
        is_retryable=True,
    ),
    "E-3003": ErrorCode(
        code="E-3003",
        category=ErrorCategory.UPSTREAM,
        title="Upstream Error Status",
        remediation="Inspect the response body for the server's reason.",
    ),
    "E-3004": ErrorCode(
        code="E-3004",
        category=ErrorCategory.UPSTREAM,
        title="Unreadable Response",
        remediation="Verify the server speaks the expected protocol.",
    ),
    "E-3005": ErrorCode(
        code="E-3005",
        category=ErrorCategory.UPSTREAM,
        title="Streaming Timeout",
        remediation="Retry with a shorter prompt or a lower max_tokens.",
        is_retryable=True,
    ),
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.SYSTEM,
        title="Storage Failure",
        remediation="Retry; if it persists, check the database file permissions.",
        is_retryable=True,
    ),
    "E-4999": ErrorCode(
        code="E-4999",
        category=ErrorCategory.SYSTEM,
        title="Unexpected Error",
        remediation="Check the application log for details.",
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Look up an error code definition.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)

