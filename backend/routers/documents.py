"""
Document API Router

Endpoints:
- GET /api/clients/{client_id}/documents - List a client's documents (?direction=send|receive)
- POST /api/clients/{client_id}/documents - Add a document to a client
- GET /api/documents/{document_id} - Get one document
- PATCH /api/documents/{document_id} - Update a document (e.g. mark as received)
- DELETE /api/documents/{document_id} - Delete a document

A document may be created with drive_folder_id instead of drive_path; the
breadcrumb is then looked up in Google Drive when a token is available.
"""

import logging
from typing import Optional, List

from fastapi import APIRouter, HTTPException, status, Depends, Query
from pydantic import BaseModel, Field

from middleware.auth import get_current_user_required
from routers.clients import DocumentOut
from routers.dependencies import get_repository, get_optional_drive_service
from services.auth import AuthUser
from services.documents import DocumentService, DocumentValidationError
from services.drive import DriveFolderService
from services.repository import Repository
from whatsapp_integration.models import DocumentDirection

logger = logging.getLogger(__name__)

client_documents_router = APIRouter(prefix="/clients/{client_id}/documents", tags=["Documents"])
router = APIRouter(prefix="/documents", tags=["Documents"])


# ==================== REQUEST MODELS ====================

class DocumentCreateRequest(BaseModel):
    name: str = Field(..., description="Document name")
    direction: DocumentDirection = Field(..., description="send = firm to client, receive = client to firm")
    drive_path: Optional[str] = Field(None, description="Breadcrumb of the Drive folder")
    drive_folder_id: Optional[str] = Field(None, description="Drive folder id to resolve into drive_path")
    required: bool = False
    received: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Extrato bancário - março",
                "direction": "receive",
                "drive_path": "Drive > Clientes > ABC > Extratos",
                "required": True
            }
        }


class DocumentUpdateRequest(BaseModel):
    name: Optional[str] = None
    direction: Optional[DocumentDirection] = None
    drive_path: Optional[str] = None
    drive_folder_id: Optional[str] = None
    required: Optional[bool] = None
    received: Optional[bool] = None


def _not_found(what: str = "Document") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


# ==================== CLIENT-SCOPED ENDPOINTS ====================

@client_documents_router.get("", response_model=List[DocumentOut])
async def list_client_documents(
    client_id: str,
    direction: Optional[DocumentDirection] = Query(None, description="Filter by direction"),
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    documents = await DocumentService(repo).list_documents(client_id, current_user.id, direction)
    if documents is None:
        raise _not_found("Client")
    return [d.to_dict() for d in documents]


@client_documents_router.post("", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
async def create_client_document(
    client_id: str,
    request: DocumentCreateRequest,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository),
    drive_service: Optional[DriveFolderService] = Depends(get_optional_drive_service)
):
    service = DocumentService(repo, drive_service=drive_service)
    try:
        document = await service.create_document(client_id, current_user.id, request.model_dump())
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not document:
        raise _not_found("Client")
    return document.to_dict()


# ==================== DOCUMENT ENDPOINTS ====================

@router.get("/{document_id}", response_model=DocumentOut)
async def get_document(
    document_id: str,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    document = await DocumentService(repo).get_document(document_id, current_user.id)
    if not document:
        raise _not_found()
    return document.to_dict()


@router.patch("/{document_id}", response_model=DocumentOut)
async def update_document(
    document_id: str,
    request: DocumentUpdateRequest,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository),
    drive_service: Optional[DriveFolderService] = Depends(get_optional_drive_service)
):
    service = DocumentService(repo, drive_service=drive_service)
    try:
        document = await service.update_document(
            document_id, current_user.id, request.model_dump(exclude_unset=True)
        )
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not document:
        raise _not_found()
    return document.to_dict()


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: str,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    deleted = await DocumentService(repo).delete_document(document_id, current_user.id)
    if not deleted:
        raise _not_found()
