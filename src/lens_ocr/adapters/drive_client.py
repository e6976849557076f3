"""Google Drive REST client for folder listing and file download."""

from typing import Any, Optional

import httpx
import structlog
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from lens_ocr.adapters.drive_auth import DriveAuthSession
from lens_ocr.errors import AuthError, FetchError, ListingError, SourceError

logger = structlog.get_logger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class DriveFile(BaseModel):
    """One child of a Drive folder."""

    id: str
    name: str
    mime_type: str = Field(
        ..., validation_alias=AliasChoices("mime_type", "mimeType")
    )


class DriveClient:
    """Client for the Drive v3 files API."""

    def __init__(
        self,
        session: DriveAuthSession,
        base_url: str = "https://www.googleapis.com/drive/v3",
        api_key: Optional[str] = None,
        timeout: int = 30,
        page_size: int = 1000,
        max_pages: int = 50,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the Drive client.

        Args:
            session: Auth session supplying bearer tokens.
            base_url: Base URL of the Drive API.
            api_key: Optional API key appended to listing calls.
            timeout: Request timeout in seconds.
            page_size: Files requested per listing page.
            max_pages: Listing pages followed before giving up.
            transport: Optional httpx transport (used by tests).
        """
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.page_size = page_size
        self.max_pages = max_pages
        self._transport = transport

        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            "drive_client_initialized",
            base_url=self.base_url,
            page_size=page_size,
            max_pages=max_pages,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def _get(
        self,
        url: str,
        params: dict[str, Any],
        error_class: type[SourceError],
    ) -> httpx.Response:
        """
        Issue an authorized GET, re-acquiring the token once on a 401.

        Raises:
            AuthError: If the credential is missing or rejected twice.
            error_class: On any other transport or HTTP failure.
        """
        client = await self._get_client()

        try:
            response = await client.get(
                url, params=params, headers=await self.session.auth_headers()
            )

            if response.status_code == httpx.codes.UNAUTHORIZED:
                logger.warning("drive_token_rejected", url=url)
                await self.session.refresh()
                response = await client.get(
                    url, params=params, headers=await self.session.auth_headers()
                )
                if response.status_code == httpx.codes.UNAUTHORIZED:
                    raise AuthError("Drive rejected the access token")

            response.raise_for_status()
            return response

        except httpx.HTTPError as e:
            response = getattr(e, "response", None)
            status_code = response.status_code if response is not None else None
            logger.error("drive_request_failed", url=url, error=str(e), status=status_code)
            raise error_class(f"Drive request failed: {str(e)}", original_error=e)

    async def list_folder(self, folder_id: str) -> list[DriveFile]:
        """
        List the immediate, non-trashed children of a folder.

        Follows nextPageToken until the listing is complete.

        Args:
            folder_id: Drive folder identifier.

        Returns:
            Children ordered by name.

        Raises:
            ListingError: If a listing call fails or the folder spans more
                than max_pages pages.
        """
        escaped_id = folder_id.replace("\\", "\\\\").replace("'", "\\'")
        url = f"{self.base_url}/files"
        files: list[DriveFile] = []
        page_token: Optional[str] = None

        logger.info("listing_drive_folder", folder_id=folder_id)

        for page in range(self.max_pages):
            params: dict[str, Any] = {
                "q": f"'{escaped_id}' in parents and trashed=false",
                "fields": "nextPageToken, files(id, name, mimeType)",
                "orderBy": "name",
                "pageSize": self.page_size,
            }
            if page_token:
                params["pageToken"] = page_token
            if self.api_key:
                params["key"] = self.api_key

            response = await self._get(url, params, ListingError)

            try:
                data = response.json()
                files.extend(
                    DriveFile.model_validate(entry) for entry in data.get("files") or []
                )
            except (ValueError, ValidationError, AttributeError, TypeError) as e:
                raise ListingError(
                    f"Unexpected Drive listing response: {str(e)}", original_error=e
                )

            page_token = data.get("nextPageToken")
            if not page_token:
                logger.info(
                    "drive_folder_listed",
                    folder_id=folder_id,
                    file_count=len(files),
                    pages=page + 1,
                )
                return files

        logger.error("drive_listing_too_large", folder_id=folder_id, pages=self.max_pages)
        raise ListingError(
            f"Folder listing exceeded {self.max_pages} pages; refusing to truncate"
        )

    async def download_file(self, file_id: str) -> bytes:
        """
        Download the raw content of one file.

        Raises:
            FetchError: If the download fails.
        """
        url = f"{self.base_url}/files/{file_id}"

        logger.info("downloading_drive_file", file_id=file_id)

        response = await self._get(url, {"alt": "media"}, FetchError)

        logger.info(
            "drive_file_downloaded",
            file_id=file_id,
            size_bytes=len(response.content),
            content_type=response.headers.get("content-type"),
        )
        return response.content

    async def fetch_bytes(self, ref: str) -> bytes:
        """Resolve a deferred batch item reference."""
        return await self.download_file(ref)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("drive_client_closed")

    async def __aenter__(self) -> "DriveClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
