import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from taskflow.dependencies import get_extractor, get_settings
from taskflow.errors import TaskflowError, ValidationError
from taskflow.services.contracts import (
    ProcessDocumentError,
    ProcessDocumentResponse,
    ProcessorDetails,
    RawSubmission,
)
from taskflow.services.extraction import DocumentExtractionClient
from taskflow.settings import Settings

router = APIRouter(prefix="/api/process-document", tags=["documents"])

logger = logging.getLogger(__name__)


async def read_submission(file: Optional[UploadFile], max_bytes: int) -> RawSubmission:
    """Read an upload without buffering more than max_bytes + 1 of it."""
    if file is None:
        raise ValidationError("A non-empty file is required")
    too_large = ValidationError(f"File exceeds the {max_bytes} byte upload limit", status_code=413)
    if file.size is not None and file.size > max_bytes:
        raise too_large
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise too_large
    return RawSubmission(
        content=content,
        mime_type=file.content_type or "application/octet-stream",
        filename=file.filename or "",
    )


def _error_response(settings: Settings, message: str, status_code: int) -> JSONResponse:
    body = ProcessDocumentError(
        error=message,
        details=ProcessorDetails(**settings.processor_details),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


# ----------------------------
# Extract text from an uploaded answer script
# ----------------------------
@router.post(
    "",
    response_model=ProcessDocumentResponse,
    responses={500: {"model": ProcessDocumentError}},
)
async def process_document(
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    extractor: DocumentExtractionClient = Depends(get_extractor),
):
    try:
        submission = await read_submission(file, settings.max_upload_bytes)
        document = await extractor.extract(submission)
        return ProcessDocumentResponse.from_document(document)
    except TaskflowError as e:
        logger.error(f"Document processing error: {e.message}", exc_info=True)
        return _error_response(settings, e.message, e.status_code)
    except Exception as e:
        logger.error(f"Unexpected document processing error: {e}", exc_info=True)
        return _error_response(settings, str(e), 500)
