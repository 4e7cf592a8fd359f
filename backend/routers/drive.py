"""
Google Drive API Router

Endpoints:
- GET /api/drive/folders/{folder_id}/path - Breadcrumb for a folder ("Drive > Clientes > ABC")
- GET /api/drive/folders?parent_id= - Child folders of a folder (default: root)

Token: X-Drive-Access-Token header, or DRIVE_ACCESS_TOKEN on the server.
503 when neither is present, 502 when Google answers with an error.
"""

import logging
from typing import Optional, List

from fastapi import APIRouter, HTTPException, status, Depends, Query
from pydantic import BaseModel, Field

from middleware.auth import get_current_user_required
from routers.dependencies import get_drive_service
from services.auth import AuthUser
from services.drive import DriveFolderService, DriveLookupError, ROOT_FOLDER_ID

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drive", tags=["Google Drive"])


class FolderPathResponse(BaseModel):
    folder_id: str
    path: str


class DriveFolder(BaseModel):
    id: str
    name: str
    parents: List[str] = Field(default_factory=list)


class FolderListResponse(BaseModel):
    parent_id: str
    folders: List[DriveFolder]


@router.get("/folders/{folder_id}/path", response_model=FolderPathResponse)
async def get_folder_path(
    folder_id: str,
    current_user: AuthUser = Depends(get_current_user_required),
    drive: DriveFolderService = Depends(get_drive_service)
):
    try:
        path = await drive.get_folder_path(folder_id)
    except DriveLookupError as e:
        logger.warning(f"Drive path lookup failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return {"folder_id": folder_id, "path": path}


@router.get("/folders", response_model=FolderListResponse)
async def list_folders(
    parent_id: Optional[str] = Query(ROOT_FOLDER_ID, description="Parent folder id"),
    current_user: AuthUser = Depends(get_current_user_required),
    drive: DriveFolderService = Depends(get_drive_service)
):
    parent = parent_id or ROOT_FOLDER_ID
    try:
        folders = await drive.list_folders(parent)
    except DriveLookupError as e:
        logger.warning(f"Drive folder listing failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return {"parent_id": parent, "folders": folders}
