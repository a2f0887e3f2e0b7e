import os
from typing import List, Optional

from pydantic import BaseModel, Field

from .errors import (
    SUPPORTED_MODELS,
    AnalysisConfigurationError,
    ExtractionConfigurationError,
)

DEFAULT_CREDENTIALS_FILE = "taskflow_keys.json"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def _env(*names: str, default: Optional[str] = None) -> Optional[str]:
    # first non-empty wins; NEXT_PUBLIC_* names are accepted for old deployments
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


class Settings(BaseModel):
    """Process-wide configuration, built once by the entry point and handed to each client."""

    gemini_api_key: Optional[str] = None
    gemini_model: str = SUPPORTED_MODELS["FLASH"]
    gemini_temperature: float = 0.2

    gcp_project_id: Optional[str] = None
    docai_processor_id: Optional[str] = None
    docai_location: Optional[str] = None

    google_client_email: Optional[str] = None
    google_client_secret: Optional[str] = None
    credentials_file: str = DEFAULT_CREDENTIALS_FILE

    max_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)
    rate_limit_per_minute: int = Field(default=60, ge=1)
    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, ge=1)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            gemini_api_key=_env("GEMINI_API_KEY", "NEXT_PUBLIC_GEMINI_API_KEY"),
            gemini_model=_env("GEMINI_MODEL", default=SUPPORTED_MODELS["FLASH"]),
            gemini_temperature=float(_env("GEMINI_TEMPERATURE", default="0.2")),
            gcp_project_id=_env("GCP_PROJECT_ID", "NEXT_PUBLIC_GCP_PROJECT_ID"),
            docai_processor_id=_env("DOCAI_PROCESSOR_ID", "NEXT_PUBLIC_DOCAI_PROCESSOR_ID"),
            docai_location=_env("DOCAI_LOCATION", "NEXT_PUBLIC_DOCAI_LOCATION"),
            google_client_email=_env("GOOGLE_CLIENT_EMAIL"),
            google_client_secret=_env("GOOGLE_CLIENT_SECRET"),
            credentials_file=_env("GOOGLE_CREDENTIALS_FILE", default=DEFAULT_CREDENTIALS_FILE),
            max_attempts=int(_env("TASKFLOW_MAX_ATTEMPTS", default="3")),
            retry_delay=float(_env("TASKFLOW_RETRY_DELAY", default="1.0")),
            rate_limit_per_minute=int(_env("TASKFLOW_RATE_LIMIT", default="60")),
            max_upload_bytes=int(_env("TASKFLOW_MAX_UPLOAD_BYTES", default=str(DEFAULT_MAX_UPLOAD_BYTES))),
        )

    @property
    def processor_details(self) -> dict:
        return {
            "projectId": self.gcp_project_id,
            "processorId": self.docai_processor_id,
            "location": self.docai_location,
        }

    def require_extraction(self) -> None:
        missing: List[str] = []
        if not self.gcp_project_id:
            missing.append("GCP_PROJECT_ID")
        if not self.docai_processor_id:
            missing.append("DOCAI_PROCESSOR_ID")
        if not self.docai_location:
            missing.append("DOCAI_LOCATION")
        if missing:
            raise ExtractionConfigurationError(
                f"Missing Document AI configuration: {', '.join(missing)}"
            )

    def require_analysis(self) -> None:
        if not self.gemini_api_key:
            raise AnalysisConfigurationError("Missing Gemini API key in environment variables")
