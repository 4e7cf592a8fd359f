"""
Message Template API Router

Endpoints:
- GET /api/templates - Global templates plus those of ?client_id=, optional ?direction=
- POST /api/templates - Create a global or client-attached template
- GET /api/templates/{template_id}
- PATCH /api/templates/{template_id}
- DELETE /api/templates/{template_id}

The variables list of a template is always derived from its content.
"""

import logging
from typing import Optional, List

from fastapi import APIRouter, HTTPException, status, Depends, Query
from pydantic import BaseModel, Field

from middleware.auth import get_current_user_required
from routers.dependencies import get_repository
from services.auth import AuthUser
from services.repository import Repository
from services.templates import TemplateService, TemplateValidationError
from whatsapp_integration.models import DocumentDirection

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/templates", tags=["Message Templates"])


# ==================== REQUEST/RESPONSE MODELS ====================

class TemplateOut(BaseModel):
    id: str
    name: str
    direction: str
    content: str
    variables: List[str] = Field(default_factory=list)
    is_default: bool = False
    client_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TemplateCreateRequest(BaseModel):
    name: str = Field(..., description="Template name")
    direction: DocumentDirection
    content: str = Field(..., description="Body text with {{variable}} placeholders")
    is_default: bool = Field(False, description="System default for the direction (global templates only)")
    client_id: Optional[str] = Field(None, description="Attach to a client; omit for a global template")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Cobrança de documentos",
                "direction": "receive",
                "content": "Oi {{contact_name}}, faltam estes documentos da {{company_name}}:\n\n{{documents_list}}"
            }
        }


class TemplateUpdateRequest(BaseModel):
    name: Optional[str] = None
    direction: Optional[DocumentDirection] = None
    content: Optional[str] = None
    is_default: Optional[bool] = None


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")


# ==================== ENDPOINTS ====================

@router.get("", response_model=List[TemplateOut])
async def list_templates(
    client_id: Optional[str] = Query(None, description="Include templates attached to this client"),
    direction: Optional[DocumentDirection] = Query(None),
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    templates = await TemplateService(repo).list_templates(current_user.id, client_id, direction)
    if templates is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return [t.to_dict() for t in templates]


@router.post("", response_model=TemplateOut, status_code=status.HTTP_201_CREATED)
async def create_template(
    request: TemplateCreateRequest,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    try:
        template = await TemplateService(repo).create_template(current_user.id, request.model_dump())
    except TemplateValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not template:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return template.to_dict()


@router.get("/{template_id}", response_model=TemplateOut)
async def get_template(
    template_id: str,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    template = await TemplateService(repo).get_template(template_id, current_user.id)
    if not template:
        raise _not_found()
    return template.to_dict()


@router.patch("/{template_id}", response_model=TemplateOut)
async def update_template(
    template_id: str,
    request: TemplateUpdateRequest,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    try:
        template = await TemplateService(repo).update_template(
            template_id, current_user.id, request.model_dump(exclude_unset=True)
        )
    except TemplateValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not template:
        raise _not_found()
    return template.to_dict()


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: str,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    deleted = await TemplateService(repo).delete_template(template_id, current_user.id)
    if not deleted:
        raise _not_found()
