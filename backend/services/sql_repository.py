"""
SQL Repository - PostgreSQL persistence via async SQLAlchemy ORM.

One instance wraps one AsyncSession; the get_repository dependency opens a
session per request and closes it afterwards.
"""

import logging
from typing import Optional, List, Dict, Any

from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import UserDB, ClientDB, DocumentDB, MessageTemplateDB
from services.repository import Repository, UserRecord
from whatsapp_integration.models import (
    Client,
    Document,
    DocumentDirection,
    MessageTemplate,
)

logger = logging.getLogger(__name__)


# ==================== ROW CONVERSION ====================

def _user_from_row(row: UserDB) -> UserRecord:
    return UserRecord(
        id=str(row.id),
        email=row.email,
        name=row.name or "",
        password_hash=row.password_hash,
        is_active=row.is_active if row.is_active is not None else True,
        created_at=row.created_at,
    )


def _document_from_row(row: DocumentDB) -> Document:
    return Document(
        id=str(row.id),
        client_id=str(row.client_id),
        name=row.name,
        direction=DocumentDirection(row.direction),
        drive_path=row.drive_path,
        required=bool(row.required),
        received=bool(row.received),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _client_from_row(row: ClientDB, documents: Optional[List[DocumentDB]] = None) -> Client:
    return Client(
        id=str(row.id),
        user_id=str(row.user_id),
        company_name=row.company_name,
        contact_name=row.contact_name,
        phone=row.phone,
        drive_link=row.drive_link,
        message_template_send=row.message_template_send,
        message_template_receive=row.message_template_receive,
        documents=[_document_from_row(d) for d in (documents or [])],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _template_from_row(row: MessageTemplateDB) -> MessageTemplate:
    return MessageTemplate(
        id=str(row.id),
        name=row.name,
        direction=DocumentDirection(row.direction),
        content=row.content,
        variables=list(row.variables or []),
        is_default=bool(row.is_default),
        client_id=str(row.client_id) if row.client_id else None,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, DocumentDirection) else value


class SqlAlchemyRepository(Repository):
    """Repository backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== USERS ====================

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        result = await self.db.execute(
            select(UserDB).where(UserDB.email == email.strip().lower())
        )
        row = result.scalar_one_or_none()
        return _user_from_row(row) if row else None

    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        row = await self.db.get(UserDB, user_id)
        return _user_from_row(row) if row else None

    async def create_user(self, user: UserRecord) -> UserRecord:
        row = UserDB(
            id=user.id,
            email=user.email.strip().lower(),
            name=user.name,
            password_hash=user.password_hash,
            is_active=user.is_active,
            created_at=user.created_at,
        )
        self.db.add(row)
        await self.db.commit()
        return user

    # ==================== CLIENTS ====================

    async def list_clients(self, user_id: str) -> List[Client]:
        result = await self.db.execute(
            select(ClientDB)
            .where(ClientDB.user_id == user_id)
            .options(selectinload(ClientDB.documents))
            .order_by(ClientDB.created_at)
        )
        return [_client_from_row(row, row.documents) for row in result.scalars().all()]

    async def get_client(self, client_id: str) -> Optional[Client]:
        result = await self.db.execute(
            select(ClientDB)
            .where(ClientDB.id == client_id)
            .options(selectinload(ClientDB.documents))
        )
        row = result.scalar_one_or_none()
        return _client_from_row(row, row.documents) if row else None

    async def create_client(self, client: Client) -> Client:
        row = ClientDB(
            id=client.id,
            user_id=client.user_id,
            company_name=client.company_name,
            contact_name=client.contact_name,
            phone=client.phone,
            drive_link=client.drive_link,
            message_template_send=client.message_template_send,
            message_template_receive=client.message_template_receive,
            created_at=client.created_at,
            updated_at=client.updated_at,
        )
        self.db.add(row)
        await self.db.commit()
        return _client_from_row(row)

    async def update_client(self, client_id: str, fields: Dict[str, Any]) -> Optional[Client]:
        row = await self.db.get(ClientDB, client_id)
        if not row:
            return None
        for key, value in fields.items():
            setattr(row, key, value)
        await self.db.commit()
        return await self.get_client(client_id)

    async def delete_client(self, client_id: str) -> bool:
        row = await self.db.get(ClientDB, client_id)
        if not row:
            return False
        await self.db.execute(
            delete(MessageTemplateDB).where(MessageTemplateDB.client_id == client_id)
        )
        await self.db.execute(
            delete(DocumentDB).where(DocumentDB.client_id == client_id)
        )
        await self.db.delete(row)
        await self.db.commit()
        return True

    # ==================== DOCUMENTS ====================

    async def list_documents(
        self,
        client_id: str,
        direction: Optional[DocumentDirection] = None
    ) -> List[Document]:
        query = select(DocumentDB).where(DocumentDB.client_id == client_id)
        if direction is not None:
            query = query.where(DocumentDB.direction == _enum_value(direction))
        result = await self.db.execute(query.order_by(DocumentDB.created_at))
        return [_document_from_row(row) for row in result.scalars().all()]

    async def get_document(self, document_id: str) -> Optional[Document]:
        row = await self.db.get(DocumentDB, document_id)
        return _document_from_row(row) if row else None

    async def create_document(self, document: Document) -> Document:
        row = DocumentDB(
            id=document.id,
            client_id=document.client_id,
            name=document.name,
            drive_path=document.drive_path,
            direction=_enum_value(document.direction),
            required=document.required,
            received=document.received,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )
        self.db.add(row)
        await self.db.commit()
        return _document_from_row(row)

    async def update_document(self, document_id: str, fields: Dict[str, Any]) -> Optional[Document]:
        row = await self.db.get(DocumentDB, document_id)
        if not row:
            return None
        for key, value in fields.items():
            setattr(row, key, _enum_value(value))
        await self.db.commit()
        return _document_from_row(row)

    async def delete_document(self, document_id: str) -> bool:
        row = await self.db.get(DocumentDB, document_id)
        if not row:
            return False
        await self.db.delete(row)
        await self.db.commit()
        return True

    # ==================== TEMPLATES ====================

    async def list_templates(
        self,
        client_id: Optional[str] = None,
        direction: Optional[DocumentDirection] = None,
        include_global: bool = True
    ) -> List[MessageTemplate]:
        scopes = []
        if include_global:
            scopes.append(MessageTemplateDB.client_id.is_(None))
        if client_id:
            scopes.append(MessageTemplateDB.client_id == client_id)
        if not scopes:
            return []

        query = select(MessageTemplateDB).where(or_(*scopes))
        if direction is not None:
            query = query.where(MessageTemplateDB.direction == _enum_value(direction))
        result = await self.db.execute(query.order_by(MessageTemplateDB.created_at))
        return [_template_from_row(row) for row in result.scalars().all()]

    async def get_template(self, template_id: str) -> Optional[MessageTemplate]:
        row = await self.db.get(MessageTemplateDB, template_id)
        return _template_from_row(row) if row else None

    async def create_template(self, template: MessageTemplate) -> MessageTemplate:
        row = MessageTemplateDB(
            id=template.id,
            client_id=template.client_id,
            name=template.name,
            direction=_enum_value(template.direction),
            content=template.content,
            variables=list(template.variables),
            is_default=template.is_default,
            created_at=template.created_at,
            updated_at=template.updated_at,
        )
        self.db.add(row)
        await self.db.commit()
        return _template_from_row(row)

    async def update_template(self, template_id: str, fields: Dict[str, Any]) -> Optional[MessageTemplate]:
        row = await self.db.get(MessageTemplateDB, template_id)
        if not row:
            return None
        for key, value in fields.items():
            setattr(row, key, _enum_value(value))
        await self.db.commit()
        return _template_from_row(row)

    async def delete_template(self, template_id: str) -> bool:
        row = await self.db.get(MessageTemplateDB, template_id)
        if not row:
            return False
        await self.db.delete(row)
        await self.db.commit()
        return True

    # ==================== LIFECYCLE ====================

    async def close(self) -> None:
        await self.db.close()
