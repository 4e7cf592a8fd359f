"""
Shared FastAPI dependencies for the routers.

- get_repository: the in-memory repository held on app.state, or a
  SqlAlchemyRepository over a per-request AsyncSession
- get_optional_drive_service / get_drive_service: Drive lookup client built
  from the X-Drive-Access-Token header or DRIVE_ACCESS_TOKEN
"""

import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from database import connection
from services.drive import DriveFolderService, DriveNotConfiguredError, build_drive_service
from services.repository import Repository
from services.sql_repository import SqlAlchemyRepository

logger = logging.getLogger(__name__)


async def get_repository(request: Request) -> AsyncIterator[Repository]:
    """Yield the repository for this request."""
    repo = getattr(request.app.state, "repository", None)
    if repo is not None:
        yield repo
        return

    if connection.AsyncSessionLocal is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage backend not configured"
        )

    async with connection.AsyncSessionLocal() as session:
        yield SqlAlchemyRepository(session)


async def get_optional_drive_service(
    x_drive_access_token: Optional[str] = Header(None)
) -> Optional[DriveFolderService]:
    """Drive client when a token is available, otherwise None."""
    try:
        return build_drive_service(x_drive_access_token)
    except DriveNotConfiguredError:
        return None


async def get_drive_service(
    x_drive_access_token: Optional[str] = Header(None)
) -> DriveFolderService:
    """Drive client; 503 when no token is available."""
    try:
        return build_drive_service(x_drive_access_token)
    except DriveNotConfiguredError as e:
        logger.warning(f"Drive request refused: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google Drive integration not configured"
        )
