"""
Google Drive Folder Lookup

Resolves a Drive folder id into a readable breadcrumb ("Drive > Clientes > ABC")
and lists child folders, using the Drive v3 REST API over httpx.

The access token comes from DRIVE_ACCESS_TOKEN or, per request, from the
X-Drive-Access-Token header. Without either the lookup is not configured.
"""

import logging
from typing import Optional, Dict, Any, List

import httpx

from config import get_settings

logger = logging.getLogger(__name__)


ROOT_FOLDER_ID = "root"
ROOT_FOLDER_NAME = "Drive"
PATH_SEPARATOR = " > "
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
# Guard against parent cycles in malformed responses
MAX_PATH_DEPTH = 32


class DriveNotConfiguredError(Exception):
    """No Drive access token available."""


class DriveLookupError(Exception):
    """The Drive API call failed or returned an unusable payload."""


def _quote_query_value(value: str) -> str:
    """Escape a value for a single-quoted Drive query literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveFolderService:
    """
    Thin async client for the two Drive calls the app needs.

    Usage:
        service = DriveFolderService(access_token="ya29...")
        path = await service.get_folder_path("1AbC...")
    """

    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not access_token:
            raise DriveNotConfiguredError("Drive access token is required")
        settings = get_settings()
        self.access_token = access_token
        self.base_url = (base_url or settings.DRIVE_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.DRIVE_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                'Authorization': f"Bearer {self.access_token}",
                'Content-Type': 'application/json'
            }
        )

    async def _get_json(self, client: httpx.AsyncClient, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise DriveLookupError("Drive API timed out") from e
        except httpx.HTTPError as e:
            raise DriveLookupError(f"Cannot reach Drive API: {str(e)[:100]}") from e

        if response.status_code != 200:
            raise DriveLookupError(f"Drive API returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise DriveLookupError("Drive API returned invalid JSON") from e

    async def get_folder_path(self, folder_id: Optional[str]) -> str:
        """
        Breadcrumb for a folder, walking up the first parent of each folder.

        An empty id or "root" is the Drive root itself.
        """
        if not folder_id or folder_id == ROOT_FOLDER_ID:
            return ROOT_FOLDER_NAME

        names: List[str] = []
        current: Optional[str] = folder_id
        async with self._client() as client:
            while current and current != ROOT_FOLDER_ID:
                if len(names) >= MAX_PATH_DEPTH:
                    raise DriveLookupError(f"Folder hierarchy deeper than {MAX_PATH_DEPTH} levels")

                folder = await self._get_json(client, f"/files/{current}", {'fields': 'name,parents'})
                name = folder.get('name')
                if not name:
                    raise DriveLookupError(f"Folder {current} has no name")
                names.append(name)

                parents = folder.get('parents') or []
                if not parents:
                    break
                current = parents[0]
            else:
                # Walk ended on the literal root alias
                names.append(ROOT_FOLDER_NAME)

        path = PATH_SEPARATOR.join(reversed(names))
        logger.debug(f"Resolved Drive folder {folder_id} at depth {len(names)}")
        return path

    async def list_folders(self, parent_id: str = ROOT_FOLDER_ID) -> List[Dict[str, Any]]:
        """Non-trashed child folders of parent_id."""
        query = (
            f"'{_quote_query_value(parent_id or ROOT_FOLDER_ID)}' in parents "
            f"and mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
        )
        async with self._client() as client:
            data = await self._get_json(
                client,
                "/files",
                {'q': query, 'fields': 'files(id,name,parents)'}
            )
        return data.get('files') or []


def build_drive_service(
    access_token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> DriveFolderService:
    """
    Build a DriveFolderService from an explicit token or the configured one.

    Raises DriveNotConfiguredError when neither is available.
    """
    token = access_token or get_settings().DRIVE_ACCESS_TOKEN
    if not token:
        raise DriveNotConfiguredError("Drive access token not configured")
    return DriveFolderService(access_token=token, transport=transport)
