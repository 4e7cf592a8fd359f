"""
Message Renderer - the three-stage pipeline.

select documents -> resolve variables -> select template and compose.
Given identical inputs the output is byte-identical; nothing is cached.
"""

import logging
from typing import Collection, List, Optional, Sequence

from .models import (
    Client,
    Document,
    MessageTemplate,
    RenderContext,
    RenderingMode,
    RenderResult,
    RenderWarning,
    TemplateSource,
)
from .selector import select_documents, restrict_to
from .resolver import resolve_variables
from .compositor import TemplateCompositor, get_compositor

logger = logging.getLogger(__name__)


class MessageRenderer:
    """
    Renders a WhatsApp message for one client.

    Usage:
        renderer = MessageRenderer()
        result = renderer.render(client, templates, RenderContext(direction="receive"))
        print(result.message)
    """

    def __init__(self, compositor: Optional[TemplateCompositor] = None):
        self.compositor = compositor or get_compositor()

    def select(
        self,
        documents: Sequence[Document],
        context: RenderContext,
        inclusion_ids: Optional[Collection[str]] = None
    ) -> List[Document]:
        if context.mode == RenderingMode.grouped_bucket:
            return restrict_to(documents, inclusion_ids)
        return select_documents(documents, context.direction, inclusion_ids)

    def render(
        self,
        client: Client,
        templates: Sequence[MessageTemplate],
        context: RenderContext,
        inclusion_ids: Optional[Collection[str]] = None,
        template_id: Optional[str] = None,
        documents: Optional[Sequence[Document]] = None,
        template_content: Optional[str] = None
    ) -> RenderResult:
        """
        Run the pipeline.

        documents defaults to the client's own document collection.
        template_content is unsaved template text (editor preview); when
        non-blank it wins over every stored template.
        """
        source_documents = client.documents if documents is None else documents
        selected = self.select(source_documents, context, inclusion_ids)

        resolved = resolve_variables(client, context, selected)

        if template_content and template_content.strip():
            content, source, used_template_id = template_content, TemplateSource.explicit, None
        else:
            content, source, used_template_id = self.compositor.select_template(
                client, context.direction, templates, template_id
            )
        body = self.compositor.compose(content, resolved.values)
        message = self.compositor.assemble(body, resolved)

        warnings = list(resolved.warnings)
        if source == TemplateSource.fallback:
            warnings.append(RenderWarning.no_template_configured)

        unresolved = self.compositor.find_unresolved_tokens(message)
        if unresolved:
            warnings.append(RenderWarning.unresolved_tokens)
            logger.warning(f"Rendered message for client {client.id} has {len(unresolved)} unresolved token(s)")

        return RenderResult(
            message=message,
            template_source=source,
            template_id=used_template_id,
            documents=selected,
            variables=resolved.values,
            unresolved_tokens=unresolved,
            warnings=warnings,
        )
