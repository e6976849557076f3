"""FastAPI routes that dispatch workflow intents from the browser UI."""

from typing import Optional

import structlog
from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from lens_ocr.adapters.base import OcrResult
from lens_ocr.errors import AdapterError, AuthError, ListingError, SourceError
from lens_ocr.models.state import PipelineStatus, WorkflowMode, WorkflowState
from lens_ocr.services.workflow import WorkflowService
from lens_ocr.sources.local import Upload

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/workflow", tags=["workflow"])


class ItemView(BaseModel):
    """Queue entry as shown to the UI."""

    id: str
    name: str
    media_type: str
    deferred: bool


class StateView(BaseModel):
    """Workflow state without document bytes."""

    mode: WorkflowMode
    status: PipelineStatus
    items: list[ItemView]
    cursor: int
    total: int
    progress: float
    accumulated_text: str
    edited_text: str
    log: list[str]
    is_running: bool
    error: Optional[str] = None
    error_kind: Optional[str] = None
    result: Optional[OcrResult] = None
    skipped_by_type: int = 0
    skipped_by_prefix: int = 0
    export_path: Optional[str] = None
    character_count: int = 0
    paragraph_count: int = 0

    @classmethod
    def from_state(cls, state: WorkflowState) -> "StateView":
        return cls(
            mode=state.mode,
            status=state.status,
            items=[
                ItemView(
                    id=item.id,
                    name=item.name,
                    media_type=item.media_type,
                    deferred=item.is_deferred,
                )
                for item in state.items
            ],
            cursor=state.cursor,
            total=state.total,
            progress=state.progress,
            accumulated_text=state.accumulated_text,
            edited_text=state.edited_text,
            log=state.log,
            is_running=state.is_running,
            error=state.error,
            error_kind=state.error_kind,
            result=state.result,
            skipped_by_type=state.skipped_by_type,
            skipped_by_prefix=state.skipped_by_prefix,
            export_path=state.export_path,
            character_count=state.character_count,
            paragraph_count=state.paragraph_count,
        )


class DriveSelection(BaseModel):
    """Folder and credential obtained by the browser-side Drive picker."""

    folder_id: str = Field(..., description="Folder chosen in the Drive picker")
    access_token: str = Field(..., description="Read-only Drive OAuth access token")
    expires_in: Optional[int] = Field(None, description="Token lifetime in seconds")


class TextUpdate(BaseModel):
    """Edited text from the editor."""

    text: str


class ExportResponse(BaseModel):
    """Location of an exported file."""

    path: str
    filename: str


def get_workflow_service(request: Request) -> WorkflowService:
    """
    Dependency returning the application's workflow service.

    Args:
        request: Incoming request.

    Returns:
        The WorkflowService created at startup.
    """
    return request.app.state.workflow_service


def _http_error(error: Exception) -> HTTPException:
    """Map workflow errors onto HTTP status codes."""
    if isinstance(error, AuthError):
        code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(error, ListingError):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(error, (AdapterError, SourceError, ValueError)):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, RuntimeError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.warning(
        "workflow_request_rejected",
        status_code=code,
        error=str(error),
        error_type=type(error).__name__,
    )
    return HTTPException(status_code=code, detail=str(error))


async def _to_upload(file: UploadFile) -> Upload:
    return Upload(
        filename=file.filename or "upload",
        content_type=file.content_type,
        data=await file.read(),
    )


@router.get("/state", response_model=StateView)
async def get_state(
    service: WorkflowService = Depends(get_workflow_service),
) -> StateView:
    """Return the current workflow state."""
    return StateView.from_state(service.snapshot())


@router.post("/file", response_model=StateView)
async def select_file(
    file: UploadFile = File(...),
    service: WorkflowService = Depends(get_workflow_service),
) -> StateView:
    """Load one image or PDF for single-item OCR."""
    try:
        state = await service.select_upload(await _to_upload(file))
    except (SourceError, RuntimeError, ValueError) as e:
        raise _http_error(e)
    return StateView.from_state(state)


@router.post("/capture", response_model=StateView)
async def select_capture(
    file: UploadFile = File(...),
    service: WorkflowService = Depends(get_workflow_service),
) -> StateView:
    """Load a camera frame for single-item OCR."""
    try:
        state = await service.select_capture(await file.read())
    except (SourceError, RuntimeError, ValueError) as e:
        raise _http_error(e)
    return StateView.from_state(state)


@router.post("/folder", response_model=StateView)
async def select_folder(
    files: list[UploadFile] = File(...),
    service: WorkflowService = Depends(get_workflow_service),
) -> StateView:
    """Load the files of a picked folder as a batch."""
    uploads = [await _to_upload(file) for file in files]
    try:
        state = await service.select_uploads(uploads)
    except (SourceError, RuntimeError, ValueError) as e:
        raise _http_error(e)
    return StateView.from_state(state)


@router.post("/drive", response_model=StateView)
async def select_drive_folder(
    selection: DriveSelection,
    service: WorkflowService = Depends(get_workflow_service),
) -> StateView:
    """Load the supported files of a Drive folder as a batch."""
    logger.info("drive_folder_requested", folder_id=selection.folder_id)
    try:
        state = await service.select_drive_folder(
            selection.folder_id,
            selection.access_token,
            expires_in=selection.expires_in,
        )
    except (SourceError, RuntimeError, ValueError) as e:
        raise _http_error(e)
    return StateView.from_state(state)


@router.post("/start", response_model=StateView, status_code=status.HTTP_202_ACCEPTED)
async def start_processing(
    background_tasks: BackgroundTasks,
    service: WorkflowService = Depends(get_workflow_service),
) -> StateView:
    """
    Start or resume processing in the background.

    Poll /state for progress. Starting while a run is active does nothing.
    """
    background_tasks.add_task(service.start)
    return StateView.from_state(service.snapshot())


@router.put("/text", response_model=StateView)
async def update_text(
    update: TextUpdate,
    service: WorkflowService = Depends(get_workflow_service),
) -> StateView:
    """Store the user's edits."""
    return StateView.from_state(service.edit_text(update.text))


@router.post("/reset", response_model=StateView)
async def reset_workflow(
    service: WorkflowService = Depends(get_workflow_service),
) -> StateView:
    """Clear the workflow; an in-flight result is discarded when it arrives."""
    return StateView.from_state(service.reset())


@router.get("/export", response_class=PlainTextResponse)
async def download_text(
    service: WorkflowService = Depends(get_workflow_service),
) -> PlainTextResponse:
    """Download the edited text as a .txt attachment."""
    filename = service.export_filename()
    return PlainTextResponse(
        content=service.snapshot().edited_text,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/export", response_model=ExportResponse)
async def export_text(
    service: WorkflowService = Depends(get_workflow_service),
) -> ExportResponse:
    """Write the edited text to the export directory."""
    try:
        path = await service.export()
    except (ValueError, OSError) as e:
        raise _http_error(e)
    return ExportResponse(path=str(path), filename=path.name)
