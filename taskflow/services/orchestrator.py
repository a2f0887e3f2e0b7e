# taskflow/services/orchestrator.py
from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, List, Optional

from taskflow.errors import (
    AnalysisTransportError,
    ExtractionTransportError,
    TaskflowError,
    ValidationError,
)
from .analysis import AnswerAnalysisClient
from .contracts import AnswerAnalysis, ExtractedDocument, RawSubmission
from .extraction import DocumentExtractionClient

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_STATES = (PipelineState.COMPLETE, PipelineState.ERROR)

ALLOWED_TRANSITIONS = {
    PipelineState.IDLE: (PipelineState.EXTRACTING,),
    PipelineState.EXTRACTING: (PipelineState.ANALYZING, PipelineState.ERROR),
    PipelineState.ANALYZING: (PipelineState.COMPLETE, PipelineState.ERROR),
    PipelineState.COMPLETE: (),
    PipelineState.ERROR: (),
}

# coarse UI feedback only
PROGRESS = {
    PipelineState.EXTRACTING: 20,
    PipelineState.ANALYZING: 60,
    PipelineState.COMPLETE: 100,
}

TransitionListener = Callable[["PipelineRun"], None]


class PipelineRun:
    """State of one submission moving through extraction and analysis."""

    def __init__(self, listener: Optional[TransitionListener] = None) -> None:
        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [PipelineState.IDLE]
        self.progress = 0
        self.document: Optional[ExtractedDocument] = None
        self.analysis: Optional[AnswerAnalysis] = None
        self.error: Optional[TaskflowError] = None
        self._listener = listener

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def failed_stage(self) -> Optional[str]:
        if self.state is not PipelineState.ERROR:
            return None
        return self.history[-2].value

    def advance(self, target: PipelineState) -> None:
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal pipeline transition {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)
        self.progress = PROGRESS.get(target, self.progress)
        logger.info(f"Pipeline {self.state.value} (progress {self.progress})")
        if self._listener:
            self._listener(self)

    def fail(self, error: TaskflowError) -> None:
        self.error = error
        self.advance(PipelineState.ERROR)


class GradingPipeline:
    def __init__(self, extractor: DocumentExtractionClient, analyzer: AnswerAnalysisClient) -> None:
        self.extractor = extractor
        self.analyzer = analyzer

    def start(
        self,
        submission: Optional[RawSubmission],
        reference_answer: Optional[str],
        listener: Optional[TransitionListener] = None,
    ) -> PipelineRun:
        """Validate inputs and hand back a fresh run in Idle. Nothing leaves Idle on bad input."""
        if submission is None or not submission.content:
            raise ValidationError("Please upload a file and provide reference text")
        if not (reference_answer or "").strip():
            raise ValidationError("Please upload a file and provide reference text")
        return PipelineRun(listener=listener)

    async def execute(self, run: PipelineRun, submission: RawSubmission, reference_answer: str) -> PipelineRun:
        run.advance(PipelineState.EXTRACTING)
        try:
            run.document = await self.extractor.extract(submission)
        except TaskflowError as e:
            logger.error(f"Extraction failed: {e.message}", exc_info=True)
            run.fail(e)
            return run
        except Exception as e:
            logger.error(f"Unexpected extraction failure: {e}", exc_info=True)
            run.fail(ExtractionTransportError(str(e) or type(e).__name__))
            return run

        run.advance(PipelineState.ANALYZING)
        try:
            run.analysis = await self.analyzer.analyze(run.document.text, reference_answer)
        except TaskflowError as e:
            logger.error(f"Analysis failed: {e.message}", exc_info=True)
            run.fail(e)
            return run
        except Exception as e:
            logger.error(f"Unexpected analysis failure: {e}", exc_info=True)
            run.fail(AnalysisTransportError(str(e) or type(e).__name__))
            return run

        run.advance(PipelineState.COMPLETE)
        return run

    async def grade(
        self,
        submission: Optional[RawSubmission],
        reference_answer: Optional[str],
        listener: Optional[TransitionListener] = None,
    ) -> PipelineRun:
        run = self.start(submission, reference_answer, listener=listener)
        return await self.execute(run, submission, reference_answer)
