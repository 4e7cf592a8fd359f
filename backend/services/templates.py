"""
Template Service

CRUD for message templates.

- Global templates (client_id is None) are shared by every operator
- Client-attached templates are visible only to the owner of that client
- The declared variable list is derived from the content on every write
- A fresh repository gets one default template per direction
"""

import uuid
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from services.audit import AuditAction, ResourceType, log_audit_event
from services.repository import Repository
from whatsapp_integration.compositor import get_compositor
from whatsapp_integration.defaults import DEFAULT_TEMPLATES
from whatsapp_integration.models import DocumentDirection, MessageTemplate

logger = logging.getLogger(__name__)


class TemplateValidationError(ValueError):
    """Raised when template data is invalid."""


def _required_text(value: Optional[str], field_name: str) -> str:
    if value is None or not value.strip():
        raise TemplateValidationError(f"{field_name} must not be empty")
    return value


def _direction(value: Any) -> DocumentDirection:
    try:
        return DocumentDirection(value)
    except ValueError:
        raise TemplateValidationError(f"Invalid direction: {value}")


class TemplateService:
    """
    Template management with per-user visibility.
    """

    def __init__(self, repo: Repository):
        self.repo = repo
        self.compositor = get_compositor()

    async def _client_owned(self, client_id: str, user_id: str) -> bool:
        client = await self.repo.get_client(client_id)
        return bool(client and client.user_id == user_id)

    async def _visible(self, template: MessageTemplate, user_id: str) -> bool:
        if template.is_global:
            return True
        return await self._client_owned(template.client_id, user_id)

    async def list_templates(
        self,
        user_id: str,
        client_id: Optional[str] = None,
        direction: Optional[DocumentDirection] = None
    ) -> Optional[List[MessageTemplate]]:
        """
        Global templates plus those attached to client_id.

        Returns None when client_id is given but not owned by user_id.
        """
        if client_id and not await self._client_owned(client_id, user_id):
            return None
        return await self.repo.list_templates(client_id=client_id, direction=direction)

    async def get_template(self, template_id: str, user_id: str) -> Optional[MessageTemplate]:
        template = await self.repo.get_template(template_id)
        if not template or not await self._visible(template, user_id):
            return None
        return template

    async def create_template(self, user_id: str, data: Dict[str, Any]) -> Optional[MessageTemplate]:
        client_id = data.get('client_id') or None
        if client_id and not await self._client_owned(client_id, user_id):
            return None

        content = _required_text(data.get('content'), 'content')
        now = datetime.now(timezone.utc)
        template = MessageTemplate(
            id=str(uuid.uuid4()),
            name=_required_text(data.get('name'), 'name').strip(),
            direction=_direction(data.get('direction')),
            content=content,
            variables=self.compositor.extract_placeholders(content),
            is_default=bool(data.get('is_default', False)) and client_id is None,
            client_id=client_id,
            created_at=now,
            updated_at=now,
        )
        created = await self.repo.create_template(template)

        log_audit_event(
            AuditAction.TEMPLATE_CREATED,
            ResourceType.TEMPLATE,
            created.id,
            user_id=user_id,
            details={
                "client_id": client_id,
                "direction": created.direction.value,
                "is_default": created.is_default,
                "variables": created.variables,
            }
        )
        return created

    async def update_template(
        self,
        template_id: str,
        user_id: str,
        data: Dict[str, Any]
    ) -> Optional[MessageTemplate]:
        existing = await self.get_template(template_id, user_id)
        if not existing:
            return None

        fields: Dict[str, Any] = {}
        if 'name' in data:
            fields['name'] = _required_text(data['name'], 'name').strip()
        if 'direction' in data:
            fields['direction'] = _direction(data['direction'])
        if 'content' in data:
            fields['content'] = _required_text(data['content'], 'content')
            fields['variables'] = self.compositor.extract_placeholders(fields['content'])
        if 'is_default' in data:
            # Only global templates can act as the system default
            fields['is_default'] = bool(data['is_default']) and existing.is_global

        if not fields:
            return existing

        fields['updated_at'] = datetime.now(timezone.utc)
        updated = await self.repo.update_template(template_id, fields)

        log_audit_event(
            AuditAction.TEMPLATE_UPDATED,
            ResourceType.TEMPLATE,
            template_id,
            user_id=user_id,
            details={"fields": sorted(k for k in fields if k != 'updated_at')}
        )
        return updated

    async def delete_template(self, template_id: str, user_id: str) -> bool:
        existing = await self.get_template(template_id, user_id)
        if not existing:
            return False

        deleted = await self.repo.delete_template(template_id)
        log_audit_event(
            AuditAction.TEMPLATE_DELETED,
            ResourceType.TEMPLATE,
            template_id,
            user_id=user_id,
            details={"client_id": existing.client_id, "was_default": existing.is_default},
            success=deleted
        )
        return deleted


async def ensure_default_templates(repo: Repository) -> List[MessageTemplate]:
    """
    Create the built-in default template for every direction that has none.

    Returns the templates that were created.
    """
    compositor = get_compositor()
    created: List[MessageTemplate] = []

    for default in DEFAULT_TEMPLATES:
        direction = default["direction"]
        existing = await repo.list_templates(direction=direction)
        if any(t.is_global and t.is_default for t in existing):
            continue

        now = datetime.now(timezone.utc)
        template = MessageTemplate(
            id=str(uuid.uuid4()),
            name=default["name"],
            direction=direction,
            content=default["content"],
            variables=compositor.extract_placeholders(default["content"]),
            is_default=True,
            client_id=None,
            created_at=now,
            updated_at=now,
        )
        created.append(await repo.create_template(template))

    if created:
        log_audit_event(
            AuditAction.TEMPLATES_SEEDED,
            ResourceType.TEMPLATE,
            None,
            details={"directions": [t.direction.value for t in created]}
        )
    return created
