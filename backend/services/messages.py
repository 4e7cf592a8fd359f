"""
Message Service

Loads a client snapshot, its documents and the templates visible to it, runs
the rendering engine and attaches a WhatsApp deep link to the result.

Only metadata is audited: client id, direction, mode, template source,
document count and warnings. Message text and phone numbers never reach the
logs.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any, Collection

from config import get_settings
from services.audit import AuditAction, ResourceType, log_audit_event
from services.repository import Repository
from whatsapp_integration import (
    MessageRenderer,
    RenderContext,
    RenderingMode,
    RenderResult,
    DocumentDirection,
    InvalidPhoneNumberError,
    build_whatsapp_link,
)

logger = logging.getLogger(__name__)


@dataclass
class MessagePreview:
    """Rendered message plus the deep link that would send it."""
    result: RenderResult
    whatsapp_link: Optional[str] = None
    link_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.result.to_dict()
        data["whatsapp_link"] = self.whatsapp_link
        data["link_error"] = self.link_error
        return data


class MessageService:
    """
    Message generation for one operator.

    Usage:
        service = MessageService(repo)
        preview = await service.render_for_client(user_id, client_id, RenderContext())
    """

    def __init__(
        self,
        repo: Repository,
        renderer: Optional[MessageRenderer] = None,
        country_code: Optional[str] = None
    ):
        self.repo = repo
        self.renderer = renderer or MessageRenderer()
        self.country_code = country_code or get_settings().WHATSAPP_COUNTRY_CODE

    async def render_for_client(
        self,
        user_id: str,
        client_id: str,
        context: RenderContext,
        inclusion_ids: Optional[Collection[str]] = None,
        template_id: Optional[str] = None,
        template_content: Optional[str] = None
    ) -> Optional[MessagePreview]:
        """
        Render a message for a client owned by user_id.

        Returns None when the client does not exist or belongs to someone else.
        A phone without digits does not fail the render: the link is left
        empty and link_error explains why.
        """
        client = await self.repo.get_client(client_id)
        if not client or client.user_id != user_id:
            return None

        templates = await self.repo.list_templates(client_id=client.id)
        result = self.renderer.render(
            client,
            templates,
            context,
            inclusion_ids=inclusion_ids,
            template_id=template_id,
            template_content=template_content,
        )

        preview = MessagePreview(result=result)
        try:
            preview.whatsapp_link = build_whatsapp_link(client.phone, result.message, self.country_code)
        except InvalidPhoneNumberError as e:
            preview.link_error = str(e)
            logger.warning(f"No deep link for client {client.id}: {e}")

        log_audit_event(
            AuditAction.MESSAGE_RENDERED,
            ResourceType.MESSAGE,
            client.id,
            user_id=user_id,
            details={
                "direction": context.direction.value,
                "mode": context.mode.value,
                "template_source": result.template_source.value,
                "template_id": result.template_id,
                "documents_count": len(result.documents),
                "warnings": [w.value for w in result.warnings],
                "has_link": preview.whatsapp_link is not None,
            }
        )
        return preview

    async def build_link_for_client(
        self,
        user_id: str,
        client_id: str,
        message: str
    ) -> Optional[str]:
        """
        Deep link for an already rendered (possibly hand-edited) message.

        Raises InvalidPhoneNumberError when the client's phone has no digits.
        """
        client = await self.repo.get_client(client_id)
        if not client or client.user_id != user_id:
            return None

        link = build_whatsapp_link(client.phone, message, self.country_code)
        log_audit_event(
            AuditAction.MESSAGE_LINK_BUILT,
            ResourceType.MESSAGE,
            client.id,
            user_id=user_id,
            details={"message_length": len(message or "")}
        )
        return link


def build_render_context(
    direction: DocumentDirection = DocumentDirection.receive,
    mode: RenderingMode = RenderingMode.single_direction_list,
    preamble: Optional[str] = None,
    include_drive_link: bool = False,
    include_tutorial: bool = False
) -> RenderContext:
    return RenderContext(
        direction=DocumentDirection(direction),
        mode=RenderingMode(mode),
        preamble=preamble or "",
        include_drive_link=include_drive_link,
        include_tutorial=include_tutorial,
    )
