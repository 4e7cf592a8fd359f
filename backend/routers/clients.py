"""
Client API Router

Endpoints:
- GET /api/clients - List the operator's clients with their documents
- POST /api/clients - Create a client
- GET /api/clients/{client_id} - Get one client
- PATCH /api/clients/{client_id} - Update client fields
- DELETE /api/clients/{client_id} - Delete a client (documents and attached templates go with it)
- PUT /api/clients/{client_id}/templates - Set the per-direction override templates

A client owned by another operator answers 404, exactly like a missing one.
"""

import logging
from typing import Optional, List

from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel, Field

from middleware.auth import get_current_user_required
from routers.dependencies import get_repository
from services.auth import AuthUser
from services.clients import ClientService, ClientValidationError
from services.repository import Repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


# ==================== REQUEST/RESPONSE MODELS ====================

class DocumentOut(BaseModel):
    id: str
    client_id: str
    name: str
    direction: str
    drive_path: Optional[str] = None
    required: bool = False
    received: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ClientOut(BaseModel):
    """Full client response."""
    id: str
    user_id: str
    company_name: str
    contact_name: str
    phone: str
    drive_link: Optional[str] = None
    message_template_send: Optional[str] = None
    message_template_receive: Optional[str] = None
    documents: List[DocumentOut] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ClientCreateRequest(BaseModel):
    company_name: str = Field(..., description="Company name")
    contact_name: str = Field(..., description="Contact person's name")
    phone: str = Field(..., description="Phone number, any formatting")
    drive_link: Optional[str] = Field(None, description="Shared Drive folder link")
    message_template_send: Optional[str] = Field(None, description="Override template for sending")
    message_template_receive: Optional[str] = Field(None, description="Override template for requesting")

    class Config:
        json_schema_extra = {
            "example": {
                "company_name": "Empresa ABC Ltda",
                "contact_name": "João Silva",
                "phone": "(11) 99999-9999",
                "drive_link": "https://drive.google.com/drive/folders/abc123"
            }
        }


class ClientUpdateRequest(BaseModel):
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    drive_link: Optional[str] = None
    message_template_send: Optional[str] = None
    message_template_receive: Optional[str] = None


class ClientTemplatesRequest(BaseModel):
    """Both overrides at once; null or blank clears one."""
    message_template_send: Optional[str] = None
    message_template_receive: Optional[str] = None


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")


# ==================== ENDPOINTS ====================

@router.get("", response_model=List[ClientOut])
async def list_clients(
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    clients = await ClientService(repo).list_clients(current_user.id)
    return [c.to_dict() for c in clients]


@router.post("", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
async def create_client(
    request: ClientCreateRequest,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    try:
        client = await ClientService(repo).create_client(current_user.id, request.model_dump())
    except ClientValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return client.to_dict()


@router.get("/{client_id}", response_model=ClientOut)
async def get_client(
    client_id: str,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    client = await ClientService(repo).get_client(client_id, current_user.id)
    if not client:
        raise _not_found()
    return client.to_dict()


@router.patch("/{client_id}", response_model=ClientOut)
async def update_client(
    client_id: str,
    request: ClientUpdateRequest,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    try:
        client = await ClientService(repo).update_client(
            client_id, current_user.id, request.model_dump(exclude_unset=True)
        )
    except ClientValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not client:
        raise _not_found()
    return client.to_dict()


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: str,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    deleted = await ClientService(repo).delete_client(client_id, current_user.id)
    if not deleted:
        raise _not_found()


@router.put("/{client_id}/templates", response_model=ClientOut)
async def set_client_templates(
    client_id: str,
    request: ClientTemplatesRequest,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    """
    Set the client's direction-specific override templates.

    These take precedence over the system default when rendering.
    """
    client = await ClientService(repo).set_override_templates(
        client_id,
        current_user.id,
        send=request.message_template_send,
        receive=request.message_template_receive
    )
    if not client:
        raise _not_found()
    return client.to_dict()
