import asyncio
import json
import logging
import os

from google.api_core import exceptions as api_exceptions
from google.api_core.client_options import ClientOptions
from google.auth import exceptions as auth_exceptions
from google.cloud import documentai
from google.oauth2 import service_account
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from taskflow.errors import (
    ExtractionConfigurationError,
    ExtractionTransportError,
    ValidationError,
)
from taskflow.settings import Settings
from .contracts import ExtractedDocument, RawSubmission

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

# 429, 500, 503, 504
TRANSIENT_ERRORS = (
    api_exceptions.TooManyRequests,
    api_exceptions.InternalServerError,
    api_exceptions.ServiceUnavailable,
    api_exceptions.DeadlineExceeded,
)


def resolve_credentials(settings: Settings) -> service_account.Credentials:
    """
    Direct client-email/private-key pair first, credentials file second.
    Raises ExtractionConfigurationError when neither yields a service account.
    """
    if settings.google_client_email and settings.google_client_secret:
        info = {
            "client_email": settings.google_client_email,
            # keys pasted into env files carry literal "\n"
            "private_key": settings.google_client_secret.replace("\\n", "\n"),
            "token_uri": TOKEN_URI,
        }
        try:
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        except ValueError as e:
            raise ExtractionConfigurationError(f"Invalid GOOGLE_CLIENT_SECRET: {e}") from e

    path = settings.credentials_file
    if not os.path.isabs(path):
        path = os.path.join(os.getcwd(), path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            info = json.load(fh)
        info.setdefault("token_uri", TOKEN_URI)
        return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    except (OSError, ValueError) as e:
        logger.error(f"Credential resolution failed, file fallback {path}: {e}")
        raise ExtractionConfigurationError(
            "Failed to load credentials from either env vars or file"
        ) from e


def to_extracted_document(document) -> ExtractedDocument:
    """Normalize a Document AI document; absent fields become their zero value."""
    if document is None:
        return ExtractedDocument()
    pages = list(getattr(document, "pages", None) or [])
    confidence = 0.0
    if pages:
        layout = getattr(pages[0], "layout", None)
        confidence = float(getattr(layout, "confidence", 0.0) or 0.0)
    return ExtractedDocument(
        text=getattr(document, "text", "") or "",
        confidence=min(max(confidence, 0.0), 1.0),
        page_count=len(pages),
    )


class DocumentExtractionClient:
    def __init__(self, settings: Settings, processor_client=None) -> None:
        self.settings = settings
        self._processor_client = processor_client

    def _client(self):
        if self._processor_client is None:
            credentials = resolve_credentials(self.settings)
            self._processor_client = documentai.DocumentProcessorServiceClient(
                credentials=credentials,
                client_options=ClientOptions(
                    api_endpoint=f"{self.settings.docai_location}-documentai.googleapis.com"
                ),
            )
        return self._processor_client

    def _process(self, client, submission: RawSubmission):
        name = client.processor_path(
            self.settings.gcp_project_id,
            self.settings.docai_location,
            self.settings.docai_processor_id,
        )
        request = documentai.ProcessRequest(
            name=name,
            # MIME type is the uploader's claim; Document AI decides if it can read it
            raw_document=documentai.RawDocument(
                content=submission.content,
                mime_type=submission.mime_type,
            ),
        )
        for attempt in Retrying(
            stop=stop_after_attempt(self.settings.max_attempts),
            wait=wait_random_exponential(multiplier=self.settings.retry_delay, max=10),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return client.process_document(request=request)

    async def extract(self, submission: RawSubmission) -> ExtractedDocument:
        if submission is None or not submission.content:
            raise ValidationError("A non-empty file is required")
        if submission.size > self.settings.max_upload_bytes:
            raise ValidationError(
                f"File exceeds the {self.settings.max_upload_bytes} byte upload limit",
                status_code=413,
            )
        self.settings.require_extraction()

        client = self._client()
        try:
            result = await asyncio.to_thread(self._process, client, submission)
        except api_exceptions.GoogleAPIError as e:
            message = getattr(e, "message", None) or str(e)
            raise ExtractionTransportError(message, status_code=getattr(e, "code", None) or 500) from e
        except auth_exceptions.RefreshError as e:
            raise ExtractionConfigurationError(f"Document AI rejected the credentials: {e}") from e
        except auth_exceptions.TransportError as e:
            raise ExtractionTransportError(str(e)) from e

        document = to_extracted_document(getattr(result, "document", None))
        logger.info(
            f"Extracted {len(document.text)} chars from {submission.filename or 'upload'} "
            f"({document.page_count} pages, confidence {document.confidence:.2f})"
        )
        return document
