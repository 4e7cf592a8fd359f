"""
WhatsApp Integration Module

Renders personalized WhatsApp messages from templates and a client's
document set, and builds wa.me deep links for them.

Usage:
    from whatsapp_integration import MessageRenderer, RenderContext, build_whatsapp_link

    renderer = MessageRenderer()
    result = renderer.render(
        client,
        templates,
        RenderContext(direction=DocumentDirection.receive),
        inclusion_ids={'doc-1', 'doc-2'},
    )
    link = build_whatsapp_link(client.phone, result.message)

Placeholders recognized in templates:
    {{contact_name}}, {{company_name}}, {{phone}}, {{documents_list}}, {{document_path}}
"""

from .models import (
    Client,
    Document,
    DocumentDirection,
    MessageTemplate,
    RenderContext,
    RenderingMode,
    RenderResult,
    RenderWarning,
    ResolvedVariables,
    TemplateSource,
)
from .selector import select_documents
from .resolver import resolve_variables, format_documents_list, format_grouped_documents_list
from .compositor import TemplateCompositor, get_compositor, compose, find_unresolved_tokens
from .renderer import MessageRenderer
from .deep_link import (
    build_whatsapp_link,
    normalize_phone_digits,
    InvalidPhoneNumberError,
    DEFAULT_COUNTRY_CODE,
)
from .defaults import AVAILABLE_VARIABLES, DEFAULT_TEMPLATES, FALLBACK_TEMPLATE, NO_DOCUMENTS_TEXT

__all__ = [
    'Client',
    'Document',
    'DocumentDirection',
    'MessageTemplate',
    'RenderContext',
    'RenderingMode',
    'RenderResult',
    'RenderWarning',
    'ResolvedVariables',
    'TemplateSource',
    'select_documents',
    'resolve_variables',
    'format_documents_list',
    'format_grouped_documents_list',
    'TemplateCompositor',
    'get_compositor',
    'compose',
    'find_unresolved_tokens',
    'MessageRenderer',
    'build_whatsapp_link',
    'normalize_phone_digits',
    'InvalidPhoneNumberError',
    'DEFAULT_COUNTRY_CODE',
    'AVAILABLE_VARIABLES',
    'DEFAULT_TEMPLATES',
    'FALLBACK_TEMPLATE',
    'NO_DOCUMENTS_TEXT',
]
