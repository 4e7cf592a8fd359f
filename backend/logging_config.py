"""
Client Docs Messenger - Structured Logging

One JSON object per line in production, readable text in development.

Request id and operator id travel in context variables so concurrent requests
on the same event loop never see each other's values. Audit records (those
logged by services.audit with an `event` extra) are lifted into an `audit`
block so log pipelines can index them without digging through extras.
"""

import json
import logging
import os
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

SERVICE_NAME = "docs-messenger"

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s [%(request_id)s] %(message)s"

_request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

# Attributes every LogRecord carries; anything else came in through extra=
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "request_id", "user_id"}

AUDIT_KEYS = ("event", "resource_type", "resource_id", "actor_id", "success", "details")

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "passlib": logging.ERROR,
    "sqlalchemy.engine": logging.WARNING,
}


def _exception_block(exc_info) -> Dict[str, Any]:
    exc_type, exc_value, exc_tb = exc_info
    return {
        "type": exc_type.__name__ if exc_type else None,
        "message": str(exc_value) if exc_value else None,
        "traceback": "".join(traceback.format_exception(exc_type, exc_value, exc_tb)) if exc_type else None,
    }


class JSONFormatter(logging.Formatter):
    """Serialize a record, its request context and its extras as JSON."""

    def __init__(self, service_name: str = SERVICE_NAME):
        super().__init__()
        self.service_name = service_name
        self.environment = os.environ.get("ENVIRONMENT", "development")

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
            "request_id": getattr(record, "request_id", None),
            "user_id": getattr(record, "user_id", None),
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        extras = {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}
        if "event" in extras:
            payload["audit"] = {k: extras.pop(k) for k in AUDIT_KEYS if k in extras}
        if extras:
            payload["extra"] = extras

        if record.exc_info:
            payload["exception"] = _exception_block(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=False)


class RequestContextFilter(logging.Filter):
    """Stamp request_id / user_id from the current context onto each record."""

    def set_request_context(
        self,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None
    ):
        set_request_context(request_id=request_id, user_id=user_id)

    def clear_request_context(self):
        clear_request_context()

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_var.get()
        record.user_id = _user_id_var.get()
        return True


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    service_name: str = SERVICE_NAME
) -> logging.Logger:
    """
    Route all logging to stdout through a single handler.

    Existing root handlers are replaced, so calling this twice is harmless.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.addFilter(RequestContextFilter())
    if json_format:
        handler.setFormatter(JSONFormatter(service_name=service_name))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_request_context(
    request_id: Optional[str] = None,
    user_id: Optional[str] = None
):
    """Bind values for the current request; None leaves a value unchanged."""
    if request_id is not None:
        _request_id_var.set(request_id)
    if user_id is not None:
        _user_id_var.set(user_id)


def clear_request_context():
    _request_id_var.set(None)
    _user_id_var.set(None)


def get_request_id() -> Optional[str]:
    return _request_id_var.get()
