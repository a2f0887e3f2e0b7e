from typing import Optional

SUPPORTED_MODELS = {
    "FLASH": "gemini-1.5-flash-latest",
    "PRO": "gemini-1.5-pro-latest",
}

ANALYSIS_SOLUTION = "\n".join([
    "1. Verify your API key is valid at https://aistudio.google.com/",
    "2. Check you're using supported model names:",
    f"   - {SUPPORTED_MODELS['FLASH']}",
    f"   - {SUPPORTED_MODELS['PRO']}",
    "3. Ensure billing is enabled in Google Cloud Console",
    "4. Check API quotas at https://console.cloud.google.com/iam-admin/quotas",
])

EXTRACTION_SOLUTION = "\n".join([
    "1. Set GOOGLE_CLIENT_EMAIL and GOOGLE_CLIENT_SECRET, or provide a service-account file",
    "2. Check GCP_PROJECT_ID, DOCAI_PROCESSOR_ID and DOCAI_LOCATION",
    "3. Make sure the Document AI API is enabled for the project",
])


class TaskflowError(Exception):
    """Base for every failure the grading pipeline reports to a caller."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


# ---------- Kinds ----------

class ValidationError(TaskflowError):
    """Missing or empty input. Raised before any network call."""

    status_code = 400


class ConfigurationError(TaskflowError):
    solution = ""

    def __init__(self, message: str, solution: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        if solution is not None:
            self.solution = solution


class TransportError(TaskflowError):
    """Network failure or non-2xx upstream status."""


class MalformedResponseError(TaskflowError):
    def __init__(self, message: str, raw_text: str = "", status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.raw_text = raw_text


# ---------- Components ----------

class ExtractionError(TaskflowError):
    stage = "extraction"


class AnalysisError(TaskflowError):
    stage = "analysis"


class ExtractionConfigurationError(ExtractionError, ConfigurationError):
    solution = EXTRACTION_SOLUTION


class ExtractionTransportError(ExtractionError, TransportError):
    pass


class AnalysisConfigurationError(AnalysisError, ConfigurationError):
    solution = ANALYSIS_SOLUTION


class AnalysisTransportError(AnalysisError, TransportError):
    pass


class MalformedAnalysisError(AnalysisError, MalformedResponseError):
    pass
