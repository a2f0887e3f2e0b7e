import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from taskflow.dependencies import get_pipeline, get_settings
from taskflow.errors import TaskflowError
from taskflow.routers.documents import read_submission
from taskflow.services.contracts import GradeSubmissionResponse, ProcessDocumentResponse
from taskflow.services.orchestrator import GradingPipeline, PipelineRun, PipelineState
from taskflow.services.report import summarize
from taskflow.settings import Settings

router = APIRouter(prefix="/api/grade-submission", tags=["grading"])

logger = logging.getLogger(__name__)


def _failure(run: Optional[PipelineRun], error: TaskflowError) -> JSONResponse:
    body = GradeSubmissionResponse(
        success=False,
        state=run.state.value if run else PipelineState.IDLE.value,
        progress=run.progress if run else 0,
        history=[s.value for s in run.history] if run else [PipelineState.IDLE.value],
        document=ProcessDocumentResponse.from_document(run.document) if run and run.document else None,
        stage=run.failed_stage if run else None,
        error=error.message,
        solution=getattr(error, "solution", None) or None,
    )
    return JSONResponse(status_code=error.status_code, content=body.model_dump(mode="json", by_alias=True))


# ----------------------------
# Extract, analyze and summarize one submission
# ----------------------------
@router.post("", response_model=GradeSubmissionResponse)
async def grade_submission(
    file: Optional[UploadFile] = File(None),
    reference_answer: Optional[str] = Form(None, alias="referenceAnswer"),
    settings: Settings = Depends(get_settings),
    pipeline: GradingPipeline = Depends(get_pipeline),
):
    try:
        submission = await read_submission(file, settings.max_upload_bytes) if file is not None else None
        run = await pipeline.grade(submission, reference_answer)
    except TaskflowError as e:
        # rejected before leaving Idle
        logger.error(f"Grading request rejected: {e.message}")
        return _failure(None, e)

    if run.state is not PipelineState.COMPLETE:
        return _failure(run, run.error)

    return GradeSubmissionResponse(
        success=True,
        state=run.state.value,
        progress=run.progress,
        history=[s.value for s in run.history],
        document=ProcessDocumentResponse.from_document(run.document),
        analysis=run.analysis,
        summary=summarize(run.analysis),
    )
