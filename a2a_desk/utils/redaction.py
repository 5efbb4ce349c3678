"""Secret redaction for log lines and upstream error text.

Provider API keys and agent custom headers are stored in plain columns, so
every log line that echoes record parameters goes through redact_for_logging.
"""

import re

# Record columns whose values never reach a log line
_SECRET_COLUMNS = frozenset({"api_key", "custom_header_json"})

_REDACTED = "***REDACTED***"


def redact_for_logging(values: dict) -> dict:
    """Return a copy of record parameters with secret columns masked.

    None values are kept so logs still show which fields were cleared.
    """
    return {
        key: _REDACTED if key in _SECRET_COLUMNS and value is not None else value
        for key, value in values.items()
    }


_SENSITIVE_KEYWORDS = r"secret|token|password|api_key|authorization|credential"
_SENSITIVE_VALUE_PATTERNS = re.compile(
    r"(?i)"
    r"(?:"
    r"Authorization\s*:\s*Bearer\s+\S+"
    r"|"
    r'"(?:' + _SENSITIVE_KEYWORDS + r')"\s*:\s*"[^"]*"'
    r"|"
    r"(?:" + _SENSITIVE_KEYWORDS + r")\s*[=:]\s*\S+"
    r")",
)


def sanitize_error_message(msg: str | None, max_length: int = 2000) -> str | None:
    """Sanitize upstream error text before it is logged.

    Agent servers echo request headers in error bodies often enough that
    status-error log lines go through here. Redacts sensitive-looking
    key/value pairs and truncates to ``max_length``.

    Args:
        msg: Error text (None passes through).
        max_length: Maximum length of the result.

    Returns:
        Sanitized and truncated text, or None.
    """
    if msg is None:
        return None
    sanitized = _SENSITIVE_VALUE_PATTERNS.sub(_REDACTED, msg)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length - 3] + "..."
    return sanitized
