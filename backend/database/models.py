"""
Client Docs Messenger - Database Models

Tables:
- users: operators who log in
- clients: accounting-firm clients, owned by a user
- documents: documents exchanged with a client (cascade-deleted with it)
- message_templates: global templates and client-attached overrides
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, ForeignKey, Index, JSON
)
from sqlalchemy.orm import relationship

from database.connection import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserDB(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(200), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class ClientDB(Base):
    """
    Client record. company_name, contact_name and phone are mandatory.
    Override templates are stored inline per direction.
    """
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    company_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    drive_link = Column(Text, nullable=True)

    message_template_send = Column(Text, nullable=True)
    message_template_receive = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    documents = relationship(
        "DocumentDB",
        back_populates="client",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DocumentDB.created_at",
    )


class DocumentDB(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(255), nullable=False)
    drive_path = Column(Text, nullable=True)
    direction = Column(String(10), nullable=False)  # send, receive
    required = Column(Boolean, default=False, nullable=False)
    received = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    client = relationship("ClientDB", back_populates="documents")

    __table_args__ = (
        Index('ix_documents_client_direction', 'client_id', 'direction'),
    )


class MessageTemplateDB(Base):
    """Global template when client_id is NULL, client override otherwise."""
    __tablename__ = "message_templates"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=True, index=True)

    name = Column(String(200), nullable=False)
    direction = Column(String(10), nullable=False)
    content = Column(Text, nullable=False)
    variables = Column(JSON, default=list)
    is_default = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
