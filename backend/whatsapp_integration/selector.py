"""
Document Selector - first stage of the rendering pipeline.
"""

from typing import Iterable, List, Optional, Collection

from .models import Document, DocumentDirection


def select_documents(
    documents: Iterable[Document],
    direction: DocumentDirection,
    inclusion_ids: Optional[Collection[str]] = None
) -> List[Document]:
    """
    Filter a client's documents by direction and explicit inclusion set.

    An empty or missing inclusion set includes every document of the
    requested direction. Input order is preserved. An empty result is a
    normal return value; callers report it as an advisory.
    """
    direction = DocumentDirection(direction)
    wanted = set(inclusion_ids) if inclusion_ids else None

    return [
        doc for doc in documents
        if doc.direction == direction and (wanted is None or doc.id in wanted)
    ]


def restrict_to(
    documents: Iterable[Document],
    inclusion_ids: Optional[Collection[str]] = None
) -> List[Document]:
    """Apply only the inclusion set, keeping every direction (grouped mode)."""
    wanted = set(inclusion_ids) if inclusion_ids else None
    return [doc for doc in documents if wanted is None or doc.id in wanted]
