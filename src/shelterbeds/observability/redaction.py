"""Redaction helpers for safe logging.

Guest names and free-text comments are personal data; they must go through
safe_log_context before being attached to a log record.
"""

import re
from decimal import Decimal
from typing import Any

_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Keys whose values are never logged, whatever they contain
PII_KEYS = frozenset({"first_name", "last_name", "comments", "name", "email", "phone"})

_REDACTED = "[REDACTED]"


def redact_string(value: str) -> str:
    """Mask phone numbers and e-mail addresses inside a string."""
    result = _PHONE_PATTERN.sub(_REDACTED, value)
    result = _EMAIL_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    # dates, times, decimals: their str() is not personal data
    if isinstance(value, Decimal) or hasattr(value, "isoformat"):
        return str(value)
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging.

    Values under PII_KEYS are replaced wholesale; everything else goes
    through redact_value.
    """
    return {
        k: (_REDACTED if k in PII_KEYS and v is not None else redact_value(v))
        for k, v in kwargs.items()
    }
