"""
Template Compositor - third stage of the rendering pipeline.

This module provides:
- Placeholder replacement: {{variable}} (exact, case-sensitive, global)
- Template selection: explicit pick -> client override -> system default -> fallback
- Assembly of preamble / body / drive link / tutorial blocks
- Post-render scan for leftover tokens

Tokens whose key is missing from the mapping are left verbatim so a
misconfigured template is visible in the output instead of silently blanked.
"""

import re
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .models import (
    Client,
    DocumentDirection,
    MessageTemplate,
    ResolvedVariables,
    TemplateSource,
)
from .defaults import FALLBACK_TEMPLATE

logger = logging.getLogger(__name__)


class TemplateCompositor:
    """
    Plain-text template compositor for WhatsApp messages.

    Pure text transformation: no I/O, never raises on template content.
    """

    # Wire format for template authors: {{identifier}}, no inner whitespace
    PLACEHOLDER_PATTERN = re.compile(r'\{\{([A-Za-z0-9_]+)\}\}')
    # Anything that still looks like a token after rendering
    LEFTOVER_PATTERN = re.compile(r'\{\{[^{}]*\}\}')

    BLOCK_SEPARATOR = "\n\n"

    def compose(self, template: str, variables: Dict[str, str]) -> str:
        """Replace every {{key}} whose key is in variables; keep the rest."""
        if not template:
            return ""

        def replace_match(match):
            key = match.group(1)
            if key in variables:
                return str(variables[key])
            return match.group(0)

        return self.PLACEHOLDER_PATTERN.sub(replace_match, template)

    def extract_placeholders(self, template: str) -> List[str]:
        """Distinct placeholder names in order of first appearance."""
        seen: List[str] = []
        for name in self.PLACEHOLDER_PATTERN.findall(template or ""):
            if name not in seen:
                seen.append(name)
        return seen

    def find_unresolved_tokens(self, text: str) -> List[str]:
        """Distinct leftover {{...}} sequences, in order of appearance."""
        found: List[str] = []
        for token in self.LEFTOVER_PATTERN.findall(text or ""):
            if token not in found:
                found.append(token)
        return found

    def select_template(
        self,
        client: Client,
        direction: DocumentDirection,
        templates: Sequence[MessageTemplate],
        template_id: Optional[str] = None
    ) -> Tuple[str, TemplateSource, Optional[str]]:
        """
        Pick the template source text for a client and direction.

        Returns (content, source, template_id). Always returns something:
        the in-process fallback covers the case with zero templates.
        """
        direction = DocumentDirection(direction)
        visible = [
            t for t in templates
            if t.client_id is None or t.client_id == client.id
        ]

        if template_id:
            picked = next((t for t in visible if t.id == template_id), None)
            if picked and picked.content.strip():
                return picked.content, TemplateSource.explicit, picked.id
            logger.warning(f"Requested template {template_id} not usable, applying default policy")

        override = client.override_template(direction)
        if override:
            return override, TemplateSource.client_override, None

        attached = self._first_usable(
            [t for t in visible if t.client_id == client.id and t.direction == direction]
        )
        if attached:
            return attached.content, TemplateSource.client_override, attached.id

        system_default = self._first_usable(
            [t for t in visible if t.is_global and t.is_default and t.direction == direction]
        )
        if system_default:
            return system_default.content, TemplateSource.system_default, system_default.id

        return FALLBACK_TEMPLATE, TemplateSource.fallback, None

    def assemble(self, body: str, resolved: ResolvedVariables) -> str:
        """Place the optional blocks around the rendered body."""
        parts = [
            resolved.preamble,
            body.strip(),
            resolved.drive_link_block,
            resolved.tutorial_block,
        ]
        return self.BLOCK_SEPARATOR.join(p for p in parts if p)

    @staticmethod
    def _first_usable(candidates: Sequence[MessageTemplate]) -> Optional[MessageTemplate]:
        usable = [t for t in candidates if t.content and t.content.strip()]
        if not usable:
            return None
        # Defaults win over other templates of the same scope
        for template in usable:
            if template.is_default:
                return template
        return usable[0]


# Global compositor instance
_compositor: Optional[TemplateCompositor] = None


def get_compositor() -> TemplateCompositor:
    """Get or create the compositor singleton."""
    global _compositor
    if _compositor is None:
        _compositor = TemplateCompositor()
    return _compositor


def compose(template: str, variables: Dict[str, str]) -> str:
    """Convenience wrapper around TemplateCompositor.compose."""
    return get_compositor().compose(template, variables)


def find_unresolved_tokens(text: str) -> List[str]:
    return get_compositor().find_unresolved_tokens(text)
