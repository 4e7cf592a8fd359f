"""
Repository - persistence abstraction for users, clients, documents and templates.

Services only talk to the Repository interface. Two implementations exist:
- InMemoryRepository (this module): session-scoped store used in demo and
  development mode; created in the app lifespan and cleared at shutdown
- SqlAlchemyRepository (services.sql_repository): PostgreSQL via async SQLAlchemy

All methods are async so both implementations share one calling convention.
Records cross the boundary as the engine's dataclasses; callers never get a
reference into the store itself.
"""

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, List, Dict, Any

from whatsapp_integration.models import (
    Client,
    Document,
    DocumentDirection,
    MessageTemplate,
)

logger = logging.getLogger(__name__)


@dataclass
class UserRecord:
    id: str
    email: str
    name: str
    password_hash: str
    is_active: bool = True
    created_at: Optional[datetime] = None


class Repository(ABC):
    """Typed CRUD over the four record collections."""

    # ==================== USERS ====================

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def create_user(self, user: UserRecord) -> UserRecord: ...

    # ==================== CLIENTS ====================

    @abstractmethod
    async def list_clients(self, user_id: str) -> List[Client]:
        """Clients owned by user_id, with their documents, oldest first."""

    @abstractmethod
    async def get_client(self, client_id: str) -> Optional[Client]: ...

    @abstractmethod
    async def create_client(self, client: Client) -> Client: ...

    @abstractmethod
    async def update_client(self, client_id: str, fields: Dict[str, Any]) -> Optional[Client]: ...

    @abstractmethod
    async def delete_client(self, client_id: str) -> bool:
        """Delete a client together with its documents and attached templates."""

    # ==================== DOCUMENTS ====================

    @abstractmethod
    async def list_documents(
        self,
        client_id: str,
        direction: Optional[DocumentDirection] = None
    ) -> List[Document]: ...

    @abstractmethod
    async def get_document(self, document_id: str) -> Optional[Document]: ...

    @abstractmethod
    async def create_document(self, document: Document) -> Document: ...

    @abstractmethod
    async def update_document(self, document_id: str, fields: Dict[str, Any]) -> Optional[Document]: ...

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool: ...

    # ==================== TEMPLATES ====================

    @abstractmethod
    async def list_templates(
        self,
        client_id: Optional[str] = None,
        direction: Optional[DocumentDirection] = None,
        include_global: bool = True
    ) -> List[MessageTemplate]:
        """
        Global templates (when include_global) plus those attached to client_id.
        """

    @abstractmethod
    async def get_template(self, template_id: str) -> Optional[MessageTemplate]: ...

    @abstractmethod
    async def create_template(self, template: MessageTemplate) -> MessageTemplate: ...

    @abstractmethod
    async def update_template(self, template_id: str, fields: Dict[str, Any]) -> Optional[MessageTemplate]: ...

    @abstractmethod
    async def delete_template(self, template_id: str) -> bool: ...

    # ==================== LIFECYCLE ====================

    async def close(self) -> None:
        """Release resources held by the repository."""
        return None


class InMemoryRepository(Repository):
    """
    Dict-backed repository.

    Insertion order is preserved, so listings come back in creation order
    exactly like the SQL implementation ordered by created_at.
    """

    def __init__(self):
        self._users: Dict[str, UserRecord] = {}
        self._clients: Dict[str, Client] = {}
        self._documents: Dict[str, Document] = {}
        self._templates: Dict[str, MessageTemplate] = {}

    # ==================== USERS ====================

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == wanted:
                return copy.copy(user)
        return None

    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        user = self._users.get(user_id)
        return copy.copy(user) if user else None

    async def create_user(self, user: UserRecord) -> UserRecord:
        if await self.get_user_by_email(user.email):
            raise ValueError("Email already registered")
        self._users[user.id] = copy.copy(user)
        return copy.copy(user)

    # ==================== CLIENTS ====================

    def _with_documents(self, client: Client) -> Client:
        result = copy.copy(client)
        result.documents = [
            copy.copy(d) for d in self._documents.values() if d.client_id == client.id
        ]
        return result

    async def list_clients(self, user_id: str) -> List[Client]:
        return [
            self._with_documents(c) for c in self._clients.values()
            if c.user_id == user_id
        ]

    async def get_client(self, client_id: str) -> Optional[Client]:
        client = self._clients.get(client_id)
        return self._with_documents(client) if client else None

    async def create_client(self, client: Client) -> Client:
        stored = copy.copy(client)
        stored.documents = []
        self._clients[stored.id] = stored
        return self._with_documents(stored)

    async def update_client(self, client_id: str, fields: Dict[str, Any]) -> Optional[Client]:
        client = self._clients.get(client_id)
        if not client:
            return None
        for key, value in fields.items():
            setattr(client, key, value)
        return self._with_documents(client)

    async def delete_client(self, client_id: str) -> bool:
        if client_id not in self._clients:
            return False
        del self._clients[client_id]
        self._documents = {k: d for k, d in self._documents.items() if d.client_id != client_id}
        self._templates = {k: t for k, t in self._templates.items() if t.client_id != client_id}
        return True

    # ==================== DOCUMENTS ====================

    async def list_documents(
        self,
        client_id: str,
        direction: Optional[DocumentDirection] = None
    ) -> List[Document]:
        return [
            copy.copy(d) for d in self._documents.values()
            if d.client_id == client_id and (direction is None or d.direction == direction)
        ]

    async def get_document(self, document_id: str) -> Optional[Document]:
        document = self._documents.get(document_id)
        return copy.copy(document) if document else None

    async def create_document(self, document: Document) -> Document:
        if document.client_id not in self._clients:
            raise ValueError(f"Unknown client: {document.client_id}")
        self._documents[document.id] = copy.copy(document)
        return copy.copy(document)

    async def update_document(self, document_id: str, fields: Dict[str, Any]) -> Optional[Document]:
        document = self._documents.get(document_id)
        if not document:
            return None
        for key, value in fields.items():
            setattr(document, key, value)
        return copy.copy(document)

    async def delete_document(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None

    # ==================== TEMPLATES ====================

    async def list_templates(
        self,
        client_id: Optional[str] = None,
        direction: Optional[DocumentDirection] = None,
        include_global: bool = True
    ) -> List[MessageTemplate]:
        result = []
        for template in self._templates.values():
            if template.client_id is None and not include_global:
                continue
            if template.client_id is not None and template.client_id != client_id:
                continue
            if direction is not None and template.direction != direction:
                continue
            result.append(copy.deepcopy(template))
        return result

    async def get_template(self, template_id: str) -> Optional[MessageTemplate]:
        template = self._templates.get(template_id)
        return copy.deepcopy(template) if template else None

    async def create_template(self, template: MessageTemplate) -> MessageTemplate:
        self._templates[template.id] = copy.deepcopy(template)
        return copy.deepcopy(template)

    async def update_template(self, template_id: str, fields: Dict[str, Any]) -> Optional[MessageTemplate]:
        template = self._templates.get(template_id)
        if not template:
            return None
        for key, value in fields.items():
            setattr(template, key, copy.deepcopy(value))
        return copy.deepcopy(template)

    async def delete_template(self, template_id: str) -> bool:
        return self._templates.pop(template_id, None) is not None

    # ==================== LIFECYCLE ====================

    async def close(self) -> None:
        self._users.clear()
        self._clients.clear()
        self._documents.clear()
        self._templates.clear()
        logger.info("In-memory repository cleared")
