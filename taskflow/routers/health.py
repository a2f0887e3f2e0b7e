import time
from datetime import datetime
from fastapi import APIRouter, Depends

from taskflow.dependencies import get_settings
from taskflow.services.contracts import HealthResponse
from taskflow.settings import Settings

router = APIRouter(prefix="/api/health", tags=["health"])

# measured from import, shared by every app built in this process
start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)):
    # reports which upstreams have the config they need, without calling them
    return HealthResponse(
        status="OK",
        uptime=round(time.time() - start_time, 3),
        date=datetime.now(),
        model=settings.gemini_model,
        extraction_configured=all(
            (settings.gcp_project_id, settings.docai_processor_id, settings.docai_location)
        ),
        analysis_configured=bool(settings.gemini_api_key),
    )
