"""
Client Service

Client CRUD for the operator's own client book.

Key Features:
- Mandatory company name, contact name and phone (trimmed, non-empty)
- Owner scoping: a client belonging to another user is treated as missing
- Direction-specific override templates stored on the client
- Audit logging for all client operations, without PII
"""

import uuid
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from services.audit import AuditAction, ResourceType, log_audit_event
from services.repository import Repository
from whatsapp_integration.models import Client, DocumentDirection

logger = logging.getLogger(__name__)


REQUIRED_FIELDS = ('company_name', 'contact_name', 'phone')
UPDATABLE_FIELDS = (
    'company_name', 'contact_name', 'phone', 'drive_link',
    'message_template_send', 'message_template_receive',
)


class ClientValidationError(ValueError):
    """Raised when client data breaks a field invariant."""


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_client_fields(fields: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Trim and check client fields.

    With partial=True only the supplied keys are checked (PATCH semantics).
    """
    cleaned: Dict[str, Any] = {}
    for key in REQUIRED_FIELDS:
        if key not in fields:
            if not partial:
                raise ClientValidationError(f"{key} is required")
            continue
        value = fields[key]
        if value is None or not str(value).strip():
            raise ClientValidationError(f"{key} must not be empty")
        cleaned[key] = str(value).strip()

    if 'drive_link' in fields:
        cleaned['drive_link'] = _clean_optional(fields['drive_link'])

    # Override templates keep their inner whitespace; blank means "no override"
    for key in ('message_template_send', 'message_template_receive'):
        if key in fields:
            value = fields[key]
            cleaned[key] = value if value and value.strip() else None

    return cleaned


class ClientService:
    """
    Client management scoped to the authenticated user.
    """

    def __init__(self, repo: Repository):
        self.repo = repo

    async def list_clients(self, user_id: str) -> List[Client]:
        return await self.repo.list_clients(user_id)

    async def get_client(self, client_id: str, user_id: str) -> Optional[Client]:
        """Return the client only when user_id owns it."""
        client = await self.repo.get_client(client_id)
        if not client or client.user_id != user_id:
            return None
        return client

    async def create_client(self, user_id: str, data: Dict[str, Any]) -> Client:
        fields = validate_client_fields(data)
        now = datetime.now(timezone.utc)
        client = Client(
            id=str(uuid.uuid4()),
            user_id=user_id,
            company_name=fields['company_name'],
            contact_name=fields['contact_name'],
            phone=fields['phone'],
            drive_link=fields.get('drive_link'),
            message_template_send=fields.get('message_template_send'),
            message_template_receive=fields.get('message_template_receive'),
            created_at=now,
            updated_at=now,
        )
        created = await self.repo.create_client(client)

        log_audit_event(
            AuditAction.CLIENT_CREATED,
            ResourceType.CLIENT,
            created.id,
            user_id=user_id,
            details={"has_drive_link": bool(created.drive_link)}
        )
        return created

    async def update_client(
        self,
        client_id: str,
        user_id: str,
        data: Dict[str, Any]
    ) -> Optional[Client]:
        existing = await self.get_client(client_id, user_id)
        if not existing:
            return None

        supplied = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}
        fields = validate_client_fields(supplied, partial=True)
        if not fields:
            return existing

        fields['updated_at'] = datetime.now(timezone.utc)
        updated = await self.repo.update_client(client_id, fields)

        log_audit_event(
            AuditAction.CLIENT_UPDATED,
            ResourceType.CLIENT,
            client_id,
            user_id=user_id,
            details={"fields": sorted(k for k in fields if k != 'updated_at')}
        )
        return updated

    async def set_override_templates(
        self,
        client_id: str,
        user_id: str,
        send: Optional[str] = None,
        receive: Optional[str] = None
    ) -> Optional[Client]:
        """
        Replace both direction overrides. None or blank clears an override.
        """
        existing = await self.get_client(client_id, user_id)
        if not existing:
            return None

        fields = validate_client_fields(
            {'message_template_send': send, 'message_template_receive': receive},
            partial=True
        )
        fields['updated_at'] = datetime.now(timezone.utc)
        updated = await self.repo.update_client(client_id, fields)

        log_audit_event(
            AuditAction.CLIENT_TEMPLATES_UPDATED,
            ResourceType.CLIENT,
            client_id,
            user_id=user_id,
            details={
                "send_override": updated.override_template(DocumentDirection.send) is not None,
                "receive_override": updated.override_template(DocumentDirection.receive) is not None,
            }
        )
        return updated

    async def delete_client(self, client_id: str, user_id: str) -> bool:
        """Delete a client with its documents and attached templates."""
        existing = await self.get_client(client_id, user_id)
        if not existing:
            return False

        deleted = await self.repo.delete_client(client_id)
        log_audit_event(
            AuditAction.CLIENT_DELETED,
            ResourceType.CLIENT,
            client_id,
            user_id=user_id,
            details={"documents_removed": len(existing.documents)},
            success=deleted
        )
        return deleted
