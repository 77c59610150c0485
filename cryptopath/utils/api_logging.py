"""
API logging utilities.

Provides structured, redacted logging for HTTP requests.
"""

import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = ("password", "token", "key", "secret", "api_key", "auth")


def sanitize_payload(payload: Any, max_length: int = 1000) -> Any:
    """
    Sanitize payload for logging (redact credentials, truncate large values).

    Args:
        payload: Payload to sanitize
        max_length: Maximum length for string values

    Returns:
        Sanitized payload
    """
    if isinstance(payload, dict):
        sanitized = {}
        for key, value in payload.items():
            if any(sensitive in str(key).lower() for sensitive in SENSITIVE_KEYS):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = sanitize_payload(value, max_length)
        return sanitized
    elif isinstance(payload, list):
        return [sanitize_payload(item, max_length) for item in payload[:10]]
    elif isinstance(payload, str):
        if len(payload) > max_length:
            return payload[:max_length] + "... [TRUNCATED]"
        return payload
    else:
        return payload


def log_api_request(
    method: str,
    path: str,
    status_code: int,
    latency_ms: float,
    query_params: Optional[Dict[str, Any]] = None,
    client: Optional[str] = None,
    error: Optional[Exception] = None,
):
    """
    Log an API request/response.

    Args:
        method: HTTP method
        path: Request path
        status_code: Response status code
        latency_ms: Request latency in milliseconds
        query_params: Query string parameters (sanitized before logging)
        client: Client host, if known
        error: Exception if request failed
    """
    log_level = logging.INFO
    if error or status_code >= 500:
        log_level = logging.ERROR
    elif status_code >= 400:
        log_level = logging.WARNING

    logger.log(
        log_level,
        "[API] %s %s -> %s (%.2fms)",
        method,
        path,
        status_code,
        latency_ms,
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "latency_ms": latency_ms,
            "query_params": sanitize_payload(query_params) if query_params else None,
            "client": client,
            "error": str(error) if error else None,
        },
    )
