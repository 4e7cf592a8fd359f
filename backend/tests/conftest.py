"""
Shared fixtures.

The environment is pinned before any application module is imported so the
cached settings always describe an in-memory, demo-mode development setup.
"""

import os

os.environ["ENVIRONMENT"] = "development"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["DATABASE_URL"] = ""
os.environ["DEMO_MODE"] = "true"
os.environ["DRIVE_ACCESS_TOKEN"] = ""
os.environ["SENTRY_DSN"] = ""
os.environ["WHATSAPP_COUNTRY_CODE"] = "55"

from datetime import datetime, timezone

import pytest

from whatsapp_integration.models import (
    Client,
    Document,
    DocumentDirection,
    MessageTemplate,
)


@pytest.fixture
def make_document():
    """Build a Document with sensible defaults."""
    def _make(
        doc_id: str,
        direction: DocumentDirection = DocumentDirection.receive,
        name: str = None,
        drive_path: str = None,
        received: bool = False,
        required: bool = False,
        client_id: str = "client-1",
    ) -> Document:
        return Document(
            id=doc_id,
            client_id=client_id,
            name=name or f"Documento {doc_id}",
            direction=direction,
            drive_path=drive_path,
            required=required,
            received=received,
            created_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
            updated_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
        )
    return _make


@pytest.fixture
def make_client():
    """Build a Client; keyword overrides replace defaults."""
    def _make(documents=None, **overrides) -> Client:
        data = dict(
            id="client-1",
            user_id="user-1",
            company_name="ABC Ltda",
            contact_name="Maria",
            phone="(11) 99999-9999",
            drive_link=None,
            documents=list(documents or []),
        )
        data.update(overrides)
        return Client(**data)
    return _make


@pytest.fixture
def make_template():
    """Build a MessageTemplate."""
    def _make(
        template_id: str,
        content: str,
        direction: DocumentDirection = DocumentDirection.receive,
        is_default: bool = False,
        client_id: str = None,
        name: str = None,
    ) -> MessageTemplate:
        return MessageTemplate(
            id=template_id,
            name=name or f"Template {template_id}",
            direction=direction,
            content=content,
            is_default=is_default,
            client_id=client_id,
        )
    return _make
