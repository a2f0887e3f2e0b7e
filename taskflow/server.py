from .secretenv import init_secrets
from dotenv import load_dotenv

init_secrets()
load_dotenv()

from fastapi import FastAPI
from contextlib import asynccontextmanager
from typing import Optional
from fastapi.middleware.cors import CORSMiddleware
from .settings import Settings
from .services.analysis import AnswerAnalysisClient
from .services.extraction import DocumentExtractionClient
from .services.orchestrator import GradingPipeline
from .routers import analysis, documents, grading, health
import logging


logging.basicConfig(level=logging.INFO)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    settings = app.state.settings
    log.info(
        f"Taskflow grading service starting (model {settings.gemini_model}, "
        f"processor {settings.docai_processor_id or 'unset'} in {settings.docai_location or 'unset'})"
    )
    try:
        yield # Application runs here
    finally:
        log.info("FastAPI shutdown: Cleaning up resources...")


def create_app(
    settings: Optional[Settings] = None,
    extractor: Optional[DocumentExtractionClient] = None,
    analyzer: Optional[AnswerAnalysisClient] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    extractor = extractor or DocumentExtractionClient(settings)
    analyzer = analyzer or AnswerAnalysisClient(settings)

    app = FastAPI(title="Taskflow grading service", lifespan=lifespan)
    app.state.settings = settings
    app.state.extractor = extractor
    app.state.analyzer = analyzer
    app.state.pipeline = GradingPipeline(extractor, analyzer)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # the web front end is served from another origin
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(documents.router)
    app.include_router(analysis.router)
    app.include_router(grading.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
