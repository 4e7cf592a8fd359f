"""
Client Docs Messenger - Sentry error tracking

Disabled unless SENTRY_DSN is set. Events are scrubbed before they leave the
process: client phone numbers, contact names, message text and credentials
are replaced with a marker, at any nesting depth.
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# Substrings matched case-insensitively against dict keys
SENSITIVE_KEYS = (
    "password", "token", "secret", "authorization", "jwt", "cookie",
    "phone", "message", "contact_name", "preamble",
)

_enabled = False


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: REDACTED if _is_sensitive(k) else _redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact(v) for v in value]
    return value


def filter_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """before_send hook: redact request payloads and extras."""
    request = event.get("request")
    if isinstance(request, dict):
        for part in ("headers", "data", "cookies", "query_string"):
            if part in request:
                request[part] = _redact(request[part])
    for section in ("extra", "contexts"):
        if section in event:
            event[section] = _redact(event[section])
    return event


def init_sentry(
    dsn: str,
    environment: str = "development",
    release: Optional[str] = None,
    traces_sample_rate: float = 0.0,
) -> bool:
    """Start the SDK; returns whether error tracking is active."""
    global _enabled

    if not dsn:
        logger.info("SENTRY_DSN not set, error tracking off")
        return False

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            release=release,
            traces_sample_rate=traces_sample_rate,
            send_default_pii=False,
            before_send=filter_sensitive_data,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
        )
    except Exception as e:
        # A bad DSN must not keep the API from starting
        logger.error(f"Sentry initialization failed: {e}")
        return False

    _enabled = True
    logger.info(f"Sentry enabled ({environment})")
    return True


def capture_exception(exception: Exception, **context) -> Optional[str]:
    """Report an exception with extra context; returns the event id when sent."""
    if not _enabled:
        return None
    with sentry_sdk.new_scope() as scope:
        for key, value in context.items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(exception)


def set_user(user_id: str) -> None:
    """Tag later events with the operator id (never the email)."""
    if _enabled:
        sentry_sdk.set_user({"id": user_id})
