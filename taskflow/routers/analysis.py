import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from taskflow.dependencies import get_analyzer
from taskflow.errors import ANALYSIS_SOLUTION, TaskflowError
from taskflow.services.analysis import AnswerAnalysisClient
from taskflow.services.contracts import (
    AnalyzeAnswerRequest,
    AnalyzeAnswerResponse,
    ErrorEnvelope,
)

router = APIRouter(prefix="/api/analyze-answer", tags=["analysis"])

logger = logging.getLogger(__name__)


def _error_response(message: str, status_code: int, solution: str = ANALYSIS_SOLUTION) -> JSONResponse:
    body = ErrorEnvelope(error=message, solution=solution)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


# ----------------------------
# Grade a student answer against a reference answer
# ----------------------------
@router.post(
    "",
    response_model=AnalyzeAnswerResponse,
    responses={500: {"model": ErrorEnvelope}},
)
async def analyze_answer(
    body: AnalyzeAnswerRequest,
    analyzer: AnswerAnalysisClient = Depends(get_analyzer),
):
    try:
        analysis = await analyzer.analyze(body.student_answer, body.reference_answer)
        return AnalyzeAnswerResponse(**analysis.model_dump(), success=True)
    except TaskflowError as e:
        logger.error(f"Analysis error: {e.message}", exc_info=True)
        return _error_response(e.message, e.status_code, getattr(e, "solution", None) or ANALYSIS_SOLUTION)
    except Exception as e:
        logger.error(f"Unexpected analysis error: {e}", exc_info=True)
        return _error_response(str(e), 500)
