"""
Audit Logging for Client Docs Messenger

Tracks key actions for traceability:
- Authentication (login, login failures)
- Client operations (create, update, delete, template overrides)
- Document operations (create, update, delete)
- Template operations (create, update, delete, default seeding)
- Message rendering and deep-link generation

Events go to the standard logging pipeline with an `extra=` payload, so the
JSON formatter ships them like any other record.

SECURITY: never logs phone numbers, names, emails or message text. Only ids,
counts, enum values and flags survive the scrub.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


# ==================== ENUMS ====================

class AuditAction(str, Enum):
    """All auditable actions in the system"""

    # Authentication
    USER_LOGIN = "user.login"
    USER_LOGIN_FAILED = "user.login_failed"
    USER_REGISTERED = "user.registered"
    USER_REGISTER_FAILED = "user.register_failed"

    # Clients
    CLIENT_CREATED = "client.created"
    CLIENT_UPDATED = "client.updated"
    CLIENT_DELETED = "client.deleted"
    CLIENT_TEMPLATES_UPDATED = "client.templates_updated"

    # Documents
    DOCUMENT_CREATED = "document.created"
    DOCUMENT_UPDATED = "document.updated"
    DOCUMENT_DELETED = "document.deleted"

    # Templates
    TEMPLATE_CREATED = "template.created"
    TEMPLATE_UPDATED = "template.updated"
    TEMPLATE_DELETED = "template.deleted"
    TEMPLATES_SEEDED = "template.defaults_seeded"

    # Messages
    MESSAGE_RENDERED = "message.rendered"
    MESSAGE_LINK_BUILT = "message.link_built"


class ResourceType(str, Enum):
    """Resource types for audit logging"""
    USER = "user"
    CLIENT = "client"
    DOCUMENT = "document"
    TEMPLATE = "template"
    MESSAGE = "message"


# Keys dropped from audit details before logging
PII_FIELDS = frozenset({
    'email', 'phone', 'name', 'contact_name', 'company_name',
    'message', 'content', 'preamble', 'drive_link', 'drive_path',
    'message_template_send', 'message_template_receive', 'password',
})


def scrub_details(details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Remove PII fields from an audit payload."""
    if not details:
        return {}
    return {k: v for k, v in details.items() if k not in PII_FIELDS}


def log_audit_event(
    action: AuditAction,
    resource_type: ResourceType,
    resource_id: Optional[str],
    user_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    success: bool = True
) -> Dict[str, Any]:
    """
    Log an action for the audit trail and return the logged entry.
    """
    log_entry = {
        "event": action.value,
        "resource_type": resource_type.value,
        "resource_id": resource_id,
        "actor_id": user_id,
        "details": scrub_details(details),
        "success": success,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    if success:
        logger.info(f"Audit: {action.value} on {resource_type.value} {resource_id}", extra=log_entry)
    else:
        logger.warning(f"Audit FAILED: {action.value} on {resource_type.value} {resource_id}", extra=log_entry)

    return log_entry
