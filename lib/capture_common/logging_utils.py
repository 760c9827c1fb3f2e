"""
Logging helpers for the capture Lambdas.

Queue events and API requests carry user notes, chat message text and
third-party tokens. Mask them before anything reaches CloudWatch Logs.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Substring match, so "token" also covers "apify_token" and "access_token".
DEFAULT_SENSITIVE_KEYS = frozenset(
    {
        "token",
        "password",
        "secret",
        "api_key",
        "apikey",
        "authorization",
        "credential",
        "notes",  # Free-text notes typed by the submitter
        "messagetext",  # Chat message the link was shared in
        "message_text",
    }
)

MAX_LOGGED_ERROR_LENGTH = 500


def mask_value(key: str, value: Any, sensitive_keys: frozenset[str] | None = None) -> Any:
    """
    Mask a value if its key names sensitive data, recursing into containers.

    Args:
        key: Dictionary key or field name
        value: Value to potentially mask
        sensitive_keys: Key substrings treated as sensitive

    Returns:
        Masked value if sensitive, original (or recursively masked) value otherwise
    """
    if sensitive_keys is None:
        sensitive_keys = DEFAULT_SENSITIVE_KEYS

    key_lower = key.lower()
    if any(s in key_lower for s in sensitive_keys):
        if isinstance(value, str) and len(value) > 20:
            return f"{value[:6]}...({len(value)} chars)"
        if isinstance(value, (list, dict)):
            return f"[{type(value).__name__}: masked]"
        return "***"

    if isinstance(value, dict):
        return {k: mask_value(k, v, sensitive_keys) for k, v in value.items()}
    if isinstance(value, list):
        return [mask_value(key, item, sensitive_keys) for item in value]
    return value


def safe_log_event(
    event: dict[str, Any],
    sensitive_keys: frozenset[str] | None = None,
) -> dict[str, Any]:
    """
    Return a copy of an event with sensitive values masked.

    Example:
        ```python
        logger.info(f"Received capture request: {safe_log_event(event)}")
        ```
    """
    if not isinstance(event, dict):
        return {"_raw": str(event)[:100]}

    try:
        return {k: mask_value(k, v, sensitive_keys) for k, v in event.items()}
    except RecursionError:
        logger.warning("Failed to mask event: structure too deep")
        return {"_error": "Could not safely serialize event", "_keys": list(event.keys())[:10]}


def log_summary(
    operation: str,
    *,
    success: bool = True,
    duration_ms: float | None = None,
    item_count: int | None = None,
    error: str | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Build a structured summary of one operation for logging.

    Only primitive extra fields are included; sequences are logged as their length.

    Example:
        ```python
        logger.info(log_summary(
            "process_capture",
            duration_ms=1520.4,
            capture_id="3f0c...",
            strategy="fxtwitter",
            categorization_degraded=False,
        ))
        ```
    """
    summary: dict[str, Any] = {
        "operation": operation,
        "success": success,
    }

    if duration_ms is not None:
        summary["duration_ms"] = round(duration_ms, 2)
    if item_count is not None:
        summary["item_count"] = item_count
    if error:
        summary["error"] = error[:MAX_LOGGED_ERROR_LENGTH]

    for key, value in kwargs.items():
        if isinstance(value, (str, int, float, bool)):
            summary[key] = value
        elif isinstance(value, (list, tuple)):
            summary[key] = len(value)

    return summary
