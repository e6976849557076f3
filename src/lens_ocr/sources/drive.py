"""Google Drive folder source."""

from abc import ABC, abstractmethod

import structlog

from lens_ocr.adapters.drive_auth import DriveAuthSession
from lens_ocr.adapters.drive_client import DriveClient
from lens_ocr.errors import AdapterError, SourceError
from lens_ocr.models.batch import BatchItem, SourceListing, is_supported_media_type
from lens_ocr.sources.base import BatchSource

logger = structlog.get_logger(__name__)


class FolderPicker(ABC):
    """External UI that lets the user choose exactly one Drive folder."""

    @abstractmethod
    async def pick_folder(self, session: DriveAuthSession) -> str:
        """
        Return the identifier of the chosen folder.

        Raises:
            AdapterError: If the pick is cancelled.
        """


class StaticFolderPicker(FolderPicker):
    """Folder chosen ahead of time, e.g. by the browser-side picker widget."""

    def __init__(self, folder_id: str) -> None:
        self.folder_id = folder_id

    async def pick_folder(self, session: DriveAuthSession) -> str:
        if not self.folder_id or not self.folder_id.strip():
            raise AdapterError("No Drive folder was selected")
        return self.folder_id.strip()


class DriveFolderSource(BatchSource):
    """Immediate children of one Drive folder, fetched lazily per item."""

    def __init__(
        self,
        session: DriveAuthSession,
        picker: FolderPicker,
        client: DriveClient,
        output_prefix: str = "ocr",
    ) -> None:
        """
        Initialize the Drive source.

        Args:
            session: Auth session shared with the Drive client.
            picker: Folder picker.
            client: Drive API client; also resolves item bytes later.
            output_prefix: Case-insensitive name prefix of the tool's own
                output files, which are never queued.
        """
        self.session = session
        self.picker = picker
        self.client = client
        self.output_prefix = output_prefix.lower()

    async def collect(self) -> SourceListing:
        """
        Authorize, pick a folder, and list its supported children.

        Raises:
            AuthError: If no credential can be obtained.
            AdapterError: If no folder is picked.
            ListingError: If the listing call fails.
        """
        await self.session.get_token()
        notes = ["Drive access granted"]

        try:
            folder_id = await self.picker.pick_folder(self.session)
        except SourceError:
            raise
        except Exception as e:
            raise AdapterError(f"Folder selection failed: {str(e)}", original_error=e)

        if not folder_id:
            raise AdapterError("No Drive folder was selected")

        files = await self.client.list_folder(folder_id)

        items: list[BatchItem] = []
        skipped_by_prefix = 0
        skipped_by_type = 0

        for drive_file in files:
            if self.output_prefix and drive_file.name.lower().startswith(self.output_prefix):
                skipped_by_prefix += 1
                continue
            if not is_supported_media_type(drive_file.mime_type):
                skipped_by_type += 1
                continue

            items.append(
                BatchItem.deferred(
                    drive_file.id,
                    drive_file.name,
                    drive_file.id,
                    self.client,
                    drive_file.mime_type,
                )
            )

        notes.append(
            f"Listed {len(files)} files: {len(items)} queued, "
            f"{skipped_by_prefix} skipped as previous output, "
            f"{skipped_by_type} skipped as unsupported"
        )

        logger.info(
            "drive_folder_collected",
            folder_id=folder_id,
            listed=len(files),
            queued=len(items),
            skipped_by_prefix=skipped_by_prefix,
            skipped_by_type=skipped_by_type,
        )

        return SourceListing(
            items=items,
            selected_count=len(files),
            skipped_by_type=skipped_by_type,
            skipped_by_prefix=skipped_by_prefix,
            notes=notes,
        )
