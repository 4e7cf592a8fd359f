"""
WhatsApp Message API Router

Endpoints:
- GET /api/messages/variables - Placeholders usable in templates, with labels
- POST /api/messages/render - Render a message for a client and build its wa.me link
- POST /api/messages/whatsapp-link - wa.me link for an edited message

Rendering never fails on configuration gaps (no template, no documents,
unknown placeholders): those come back as warnings next to the message.
"""

import logging
from typing import Optional, List, Dict

from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel, Field

from middleware.auth import get_current_user_required
from routers.dependencies import get_repository
from services.auth import AuthUser
from services.messages import MessageService, build_render_context
from services.repository import Repository
from whatsapp_integration import (
    AVAILABLE_VARIABLES,
    DocumentDirection,
    InvalidPhoneNumberError,
    RenderingMode,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["WhatsApp Messages"])


# ==================== REQUEST/RESPONSE MODELS ====================

class RenderMessageRequest(BaseModel):
    client_id: str
    direction: DocumentDirection = DocumentDirection.receive
    mode: RenderingMode = RenderingMode.single_direction_list
    document_ids: List[str] = Field(default_factory=list, description="Documents to include; empty means all")
    template_id: Optional[str] = Field(None, description="Explicit template choice")
    content: Optional[str] = Field(None, description="Unsaved template text to preview; wins over template_id")
    preamble: Optional[str] = Field(None, description="Free text placed before the message")
    include_drive_link: bool = False
    include_tutorial: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "client_id": "550e8400-e29b-41d4-a716-446655440000",
                "direction": "receive",
                "mode": "single-direction-list",
                "document_ids": [],
                "include_drive_link": True
            }
        }


class RenderMessageResponse(BaseModel):
    message: str
    template_source: str
    template_id: Optional[str] = None
    document_ids: List[str] = Field(default_factory=list)
    documents_count: int = 0
    variables: Dict[str, str] = Field(default_factory=dict)
    unresolved_tokens: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    whatsapp_link: Optional[str] = None
    link_error: Optional[str] = None


class WhatsAppLinkRequest(BaseModel):
    client_id: str
    message: str = Field(..., description="Final message text, possibly edited by hand")


class WhatsAppLinkResponse(BaseModel):
    whatsapp_link: str


class TemplateVariable(BaseModel):
    name: str
    token: str
    label: str


# ==================== ENDPOINTS ====================

@router.get("/variables", response_model=List[TemplateVariable])
async def list_variables(
    current_user: AuthUser = Depends(get_current_user_required)
):
    """Placeholders recognized by the renderer."""
    return [
        {"name": name, "token": f"{{{{{name}}}}}", "label": label}
        for name, label in AVAILABLE_VARIABLES.items()
    ]


@router.post("/render", response_model=RenderMessageResponse)
async def render_message(
    request: RenderMessageRequest,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    """
    Render a WhatsApp message for a client.

    **Template selection:** unsaved content, then an explicit template_id,
    then the client's override for the direction, then the system default,
    then a built-in greeting.

    **Modes:**
    - single-direction-list: numbered list of the chosen direction's documents
    - grouped-bucket: pending / to send / received blocks, direction ignored
    """
    context = build_render_context(
        direction=request.direction,
        mode=request.mode,
        preamble=request.preamble,
        include_drive_link=request.include_drive_link,
        include_tutorial=request.include_tutorial,
    )
    preview = await MessageService(repo).render_for_client(
        current_user.id,
        request.client_id,
        context,
        inclusion_ids=request.document_ids,
        template_id=request.template_id,
        template_content=request.content,
    )
    if not preview:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return preview.to_dict()


@router.post("/whatsapp-link", response_model=WhatsAppLinkResponse)
async def build_link(
    request: WhatsAppLinkRequest,
    current_user: AuthUser = Depends(get_current_user_required),
    repo: Repository = Depends(get_repository)
):
    """wa.me deep link that opens WhatsApp with the message pre-filled."""
    try:
        link = await MessageService(repo).build_link_for_client(
            current_user.id, request.client_id, request.message
        )
    except InvalidPhoneNumberError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not link:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return {"whatsapp_link": link}
