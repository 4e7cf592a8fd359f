"""
Variable Resolver - second stage of the rendering pipeline.

Builds the placeholder -> text mapping for a client and a document selection:
- contact_name, company_name, phone: client attributes, inserted as given
- documents_list: numbered listing (single-direction or grouped buckets)
- document_path: drive path of the first selected document

Preamble, drive link and tutorial are resolved into separate blocks that the
compositor places around the template body.
"""

import logging
from typing import List, Sequence

from .models import (
    Client,
    Document,
    DocumentDirection,
    RenderContext,
    RenderingMode,
    RenderWarning,
    ResolvedVariables,
)
from .defaults import (
    RECEIVED_GLYPH,
    PENDING_GLYPH,
    NO_DOCUMENTS_TEXT,
    PENDING_BUCKET_LABEL,
    TO_SEND_BUCKET_LABEL,
    RECEIVED_BUCKET_LABEL,
    DRIVE_LINK_LABEL,
    TUTORIAL_TEXT,
)

logger = logging.getLogger(__name__)


def status_glyph(document: Document) -> str:
    return RECEIVED_GLYPH if document.received else PENDING_GLYPH


def format_document_line(index: int, document: Document, with_status: bool) -> str:
    line = f"{index}. {document.name}"
    if document.drive_path:
        line += f" ({document.drive_path})"
    if with_status:
        line += f" {status_glyph(document)}"
    return line


def format_documents_list(
    documents: Sequence[Document],
    direction: DocumentDirection
) -> str:
    """
    Single-direction listing: one numbered line per document.

    Status glyphs are only added for the receive direction.
    """
    if not documents:
        return NO_DOCUMENTS_TEXT

    with_status = DocumentDirection(direction) == DocumentDirection.receive
    lines = [
        format_document_line(i, doc, with_status)
        for i, doc in enumerate(documents, start=1)
    ]
    return "\n".join(lines).rstrip()


def format_grouped_documents_list(documents: Sequence[Document]) -> str:
    """
    Grouped listing for a combined request+send message.

    Buckets, in fixed order: pending to receive, to send, already received.
    Empty buckets are left out; numbering restarts in each block.
    """
    pending = [d for d in documents if d.direction == DocumentDirection.receive and not d.received]
    to_send = [d for d in documents if d.direction == DocumentDirection.send]
    received = [d for d in documents if d.direction == DocumentDirection.receive and d.received]

    blocks: List[str] = []
    for label, bucket, with_status in (
        (PENDING_BUCKET_LABEL, pending, True),
        (TO_SEND_BUCKET_LABEL, to_send, False),
        (RECEIVED_BUCKET_LABEL, received, True),
    ):
        if not bucket:
            continue
        lines = [label] + [
            format_document_line(i, doc, with_status)
            for i, doc in enumerate(bucket, start=1)
        ]
        blocks.append("\n".join(lines))

    if not blocks:
        return NO_DOCUMENTS_TEXT

    return "\n\n".join(blocks).rstrip()


def resolve_variables(
    client: Client,
    context: RenderContext,
    documents: Sequence[Document]
) -> ResolvedVariables:
    """Resolve every recognized placeholder plus the optional extra blocks."""
    if context.mode == RenderingMode.grouped_bucket:
        documents_list = format_grouped_documents_list(documents)
    else:
        documents_list = format_documents_list(documents, context.direction)

    values = {
        "contact_name": client.contact_name,
        "company_name": client.company_name,
        "phone": client.phone,
        "documents_list": documents_list,
        "document_path": (documents[0].drive_path or "") if documents else "",
    }

    warnings: List[RenderWarning] = []
    if not documents:
        warnings.append(RenderWarning.no_documents_selected)

    drive_link_block = ""
    if context.include_drive_link:
        if client.drive_link and client.drive_link.strip():
            drive_link_block = f"{DRIVE_LINK_LABEL} {client.drive_link.strip()}"
        else:
            warnings.append(RenderWarning.drive_link_missing)

    return ResolvedVariables(
        values=values,
        preamble=(context.preamble or "").strip(),
        drive_link_block=drive_link_block,
        tutorial_block=TUTORIAL_TEXT if context.include_tutorial else "",
        warnings=warnings,
    )
