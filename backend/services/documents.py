"""
Document Service

CRUD for the documents exchanged with a client. Every operation checks that
the owning client belongs to the calling user.

When a document is saved with a Drive folder id and no explicit path, the
breadcrumb is looked up through the Drive service. That enrichment is
optional: failures are logged and the path stays empty.
"""

import uuid
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from services.audit import AuditAction, ResourceType, log_audit_event
from services.drive import DriveFolderService, DriveLookupError
from services.repository import Repository
from whatsapp_integration.models import Document, DocumentDirection

logger = logging.getLogger(__name__)


UPDATABLE_FIELDS = ('name', 'drive_path', 'direction', 'required', 'received')


class DocumentValidationError(ValueError):
    """Raised when document data is invalid."""


def _clean_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise DocumentValidationError("name must not be empty")
    return name.strip()


def _clean_direction(direction: Any) -> DocumentDirection:
    try:
        return DocumentDirection(direction)
    except ValueError:
        raise DocumentValidationError(f"Invalid direction: {direction}")


class DocumentService:
    """
    Document management for a user's clients.
    """

    def __init__(self, repo: Repository, drive_service: Optional[DriveFolderService] = None):
        self.repo = repo
        self.drive_service = drive_service

    async def _owned_client_id(self, client_id: str, user_id: str) -> Optional[str]:
        client = await self.repo.get_client(client_id)
        if not client or client.user_id != user_id:
            return None
        return client.id

    async def _resolve_drive_path(self, folder_id: Optional[str]) -> Optional[str]:
        """Breadcrumb for folder_id, or None when unavailable."""
        if not folder_id or not self.drive_service:
            return None
        try:
            return await self.drive_service.get_folder_path(folder_id)
        except DriveLookupError as e:
            logger.warning(f"Drive path lookup failed for folder {folder_id}: {e}")
            return None

    async def list_documents(
        self,
        client_id: str,
        user_id: str,
        direction: Optional[DocumentDirection] = None
    ) -> Optional[List[Document]]:
        """Documents of a client, or None when the client is not the user's."""
        if not await self._owned_client_id(client_id, user_id):
            return None
        return await self.repo.list_documents(client_id, direction)

    async def get_document(self, document_id: str, user_id: str) -> Optional[Document]:
        document = await self.repo.get_document(document_id)
        if not document:
            return None
        if not await self._owned_client_id(document.client_id, user_id):
            return None
        return document

    async def create_document(
        self,
        client_id: str,
        user_id: str,
        data: Dict[str, Any]
    ) -> Optional[Document]:
        if not await self._owned_client_id(client_id, user_id):
            return None

        drive_path = (data.get('drive_path') or '').strip() or None
        if drive_path is None:
            drive_path = await self._resolve_drive_path(data.get('drive_folder_id'))

        now = datetime.now(timezone.utc)
        document = Document(
            id=str(uuid.uuid4()),
            client_id=client_id,
            name=_clean_name(data.get('name')),
            direction=_clean_direction(data.get('direction')),
            drive_path=drive_path,
            required=bool(data.get('required', False)),
            received=bool(data.get('received', False)),
            created_at=now,
            updated_at=now,
        )
        created = await self.repo.create_document(document)

        log_audit_event(
            AuditAction.DOCUMENT_CREATED,
            ResourceType.DOCUMENT,
            created.id,
            user_id=user_id,
            details={
                "client_id": client_id,
                "direction": created.direction.value,
                "has_drive_path": bool(created.drive_path),
            }
        )
        return created

    async def update_document(
        self,
        document_id: str,
        user_id: str,
        data: Dict[str, Any]
    ) -> Optional[Document]:
        existing = await self.get_document(document_id, user_id)
        if not existing:
            return None

        fields: Dict[str, Any] = {}
        for key in UPDATABLE_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if key == 'name':
                fields['name'] = _clean_name(value)
            elif key == 'direction':
                fields['direction'] = _clean_direction(value)
            elif key == 'drive_path':
                fields['drive_path'] = (value or '').strip() or None
            else:
                fields[key] = bool(value)

        if 'drive_path' not in data and data.get('drive_folder_id'):
            resolved = await self._resolve_drive_path(data['drive_folder_id'])
            if resolved:
                fields['drive_path'] = resolved

        if not fields:
            return existing

        fields['updated_at'] = datetime.now(timezone.utc)
        updated = await self.repo.update_document(document_id, fields)

        log_audit_event(
            AuditAction.DOCUMENT_UPDATED,
            ResourceType.DOCUMENT,
            document_id,
            user_id=user_id,
            details={"client_id": existing.client_id, "fields": sorted(k for k in fields if k != 'updated_at')}
        )
        return updated

    async def delete_document(self, document_id: str, user_id: str) -> bool:
        existing = await self.get_document(document_id, user_id)
        if not existing:
            return False

        deleted = await self.repo.delete_document(document_id)
        log_audit_event(
            AuditAction.DOCUMENT_DELETED,
            ResourceType.DOCUMENT,
            document_id,
            user_id=user_id,
            details={"client_id": existing.client_id},
            success=deleted
        )
        return deleted
