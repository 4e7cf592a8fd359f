"""
WhatsApp Integration - Engine data models

Plain in-memory snapshots consumed by the rendering engine. The engine never
reads storage itself: services load these records and hand them over.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List


class DocumentDirection(str, Enum):
    """Which way a document flows between the firm and the client."""
    send = "send"          # firm -> client
    receive = "receive"    # client -> firm


class RenderingMode(str, Enum):
    """How the documents_list variable is laid out."""
    single_direction_list = "single-direction-list"
    grouped_bucket = "grouped-bucket"


class TemplateSource(str, Enum):
    explicit = "explicit"
    client_override = "client_override"
    system_default = "system_default"
    fallback = "fallback"


class RenderWarning(str, Enum):
    """Advisory conditions surfaced to the operator. Never raised."""
    no_documents_selected = "no_documents_selected"
    no_template_configured = "no_template_configured"
    unresolved_tokens = "unresolved_tokens"
    drive_link_missing = "drive_link_missing"


@dataclass
class Document:
    id: str
    client_id: str
    name: str
    direction: DocumentDirection
    drive_path: Optional[str] = None
    required: bool = False
    received: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.direction == DocumentDirection.receive and not self.received

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "name": self.name,
            "direction": self.direction.value,
            "drive_path": self.drive_path,
            "required": self.required,
            "received": self.received,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class Client:
    """
    Client snapshot.

    company_name, contact_name and phone are mandatory; the service layer
    enforces that before a Client is ever persisted.
    """
    id: str
    user_id: str
    company_name: str
    contact_name: str
    phone: str
    drive_link: Optional[str] = None
    message_template_send: Optional[str] = None
    message_template_receive: Optional[str] = None
    documents: List[Document] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def override_template(self, direction: DocumentDirection) -> Optional[str]:
        """Direction-specific override text, or None when blank."""
        if direction == DocumentDirection.send:
            text = self.message_template_send
        else:
            text = self.message_template_receive
        if text and text.strip():
            return text
        return None

    def to_dict(self, include_documents: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "company_name": self.company_name,
            "contact_name": self.contact_name,
            "phone": self.phone,
            "drive_link": self.drive_link,
            "message_template_send": self.message_template_send,
            "message_template_receive": self.message_template_receive,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_documents:
            data["documents"] = [d.to_dict() for d in self.documents]
        return data


@dataclass
class MessageTemplate:
    id: str
    name: str
    direction: DocumentDirection
    content: str
    variables: List[str] = field(default_factory=list)
    is_default: bool = False
    client_id: Optional[str] = None  # None = global template
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_global(self) -> bool:
        return self.client_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "direction": self.direction.value,
            "content": self.content,
            "variables": list(self.variables),
            "is_default": self.is_default,
            "client_id": self.client_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class RenderContext:
    """Operator choices for one rendering."""
    direction: DocumentDirection = DocumentDirection.receive
    mode: RenderingMode = RenderingMode.single_direction_list
    preamble: str = ""
    include_drive_link: bool = False
    include_tutorial: bool = False


@dataclass
class ResolvedVariables:
    """Output of the variable resolver: token values plus the extra blocks."""
    values: Dict[str, str]
    preamble: str = ""
    drive_link_block: str = ""
    tutorial_block: str = ""
    warnings: List[RenderWarning] = field(default_factory=list)


@dataclass
class RenderResult:
    message: str
    template_source: TemplateSource
    template_id: Optional[str]
    documents: List[Document]
    variables: Dict[str, str]
    unresolved_tokens: List[str] = field(default_factory=list)
    warnings: List[RenderWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "template_source": self.template_source.value,
            "template_id": self.template_id,
            "document_ids": [d.id for d in self.documents],
            "documents_count": len(self.documents),
            "variables": dict(self.variables),
            "unresolved_tokens": list(self.unresolved_tokens),
            "warnings": [w.value for w in self.warnings],
        }
