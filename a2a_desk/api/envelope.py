"""Uniform result envelope for every API operation.

Every handled outcome answers HTTP 200 with:

    {"code": 0 | 1, "message": str, "data": T | null, "error_code": "E-XXXX" | null}

``invoke``/``invoke_async`` run one service call and convert DomainError
subclasses to a failed envelope carrying the registry code. Anything else
is logged with its traceback and reported as E-4999.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel

from a2a_desk.errors.domain import DomainError
from a2a_desk.utils.redaction import sanitize_error_message

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_CODE = "E-4999"


class InvokeResponse(BaseModel):
    """Result envelope returned by every route."""

    code: int
    message: str
    data: Any = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: Any = None, message: str = "ok") -> "InvokeResponse":
        return cls(code=0, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error_code: str | None = None) -> "InvokeResponse":
        return cls(code=1, message=message, data=None, error_code=error_code)

    @property
    def ok(self) -> bool:
        return self.code == 0


def from_exception(exc: Exception) -> InvokeResponse:
    """Convert an exception raised by a service call into a failed envelope."""
    if isinstance(exc, DomainError):
        logger.warning(
            "%s [%s]: %s", type(exc).__name__, exc.code, sanitize_error_message(exc.message)
        )
        return InvokeResponse.fail(exc.message, exc.code)
    logger.exception("Unexpected error: %s", exc)
    message = sanitize_error_message(f"Unexpected error: {exc}") or "Unexpected error"
    return InvokeResponse.fail(message, UNEXPECTED_ERROR_CODE)


def invoke(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> InvokeResponse:
    """Run a sync service call and wrap its result or failure."""
    try:
        return InvokeResponse.success(fn(*args, **kwargs))
    except Exception as e:
        return from_exception(e)


async def invoke_async(
    fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
) -> InvokeResponse:
    """Await an async service call and wrap its result or failure."""
    try:
        return InvokeResponse.success(await fn(*args, **kwargs))
    except Exception as e:
        return from_exception(e)
