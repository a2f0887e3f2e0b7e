from fastapi import Request

from .settings import Settings
from .services.analysis import AnswerAnalysisClient
from .services.extraction import DocumentExtractionClient
from .services.orchestrator import GradingPipeline


# clients are built once by server.create_app and live on app.state

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_extractor(request: Request) -> DocumentExtractionClient:
    return request.app.state.extractor


def get_analyzer(request: Request) -> AnswerAnalysisClient:
    return request.app.state.analyzer


def get_pipeline(request: Request) -> GradingPipeline:
    return request.app.state.pipeline
