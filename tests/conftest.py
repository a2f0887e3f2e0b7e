"""
Shared fixtures for the grading service.
Document AI and Gemini are replaced with in-memory fakes; no test touches the network.
"""
import copy
import json
from types import SimpleNamespace

import pytest

from taskflow.settings import Settings
from taskflow.services.analysis import AnswerAnalysisClient
from taskflow.services.contracts import AnswerAnalysis, ExtractedDocument, RawSubmission
from taskflow.services.extraction import DocumentExtractionClient

ANALYSIS_PAYLOAD = {
    "score": 85,
    "categoryScores": [
        {"category": "Keywords", "score": 90, "maxScore": 100},
        {"category": "Grammar", "score": 80, "maxScore": 100},
        {"category": "Content Accuracy", "score": 85, "maxScore": 100},
        {"category": "Completeness", "score": 75, "maxScore": 100},
    ],
    "missingConcepts": [],
    "feedback": "Good job",
    "strengths": ["clear"],
    "improvements": ["add examples"],
    "contentBreakdown": {"matched": 80, "missing": 10, "extra": 10},
}

EXTRACTED_TEXT = "Newton's first law..."
REFERENCE_TEXT = "Newton's laws..."


class FakeProcessorClient:
    """Stands in for documentai.DocumentProcessorServiceClient."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def processor_path(self, project, location, processor):
        return f"projects/{project}/locations/{location}/processors/{processor}"

    def process_document(self, request=None):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(document=outcome)


class FakeModels:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(text=outcome)


class FakeGenaiClient:
    """Stands in for google.genai.Client; only the async generate path is used."""

    def __init__(self, *outcomes):
        self.models = FakeModels(outcomes)
        self.aio = SimpleNamespace(models=self.models)


class StubExtractor:
    def __init__(self, result):
        self.result = result
        self.calls = 0

    async def extract(self, submission):
        self.calls += 1
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class StubAnalyzer:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def analyze(self, student_answer, reference_answer):
        self.calls.append((student_answer, reference_answer))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def make_document(text=EXTRACTED_TEXT, confidences=(0.92,)):
    pages = [SimpleNamespace(layout=SimpleNamespace(confidence=c)) for c in confidences]
    return SimpleNamespace(text=text, pages=pages)


@pytest.fixture
def settings():
    return Settings(
        gemini_api_key="test-key",
        gcp_project_id="taskflow-test",
        docai_processor_id="proc-123",
        docai_location="us",
        max_attempts=1,
        retry_delay=0,
    )


@pytest.fixture
def analysis_payload():
    return copy.deepcopy(ANALYSIS_PAYLOAD)


@pytest.fixture
def expected_analysis(analysis_payload):
    return AnswerAnalysis.model_validate(analysis_payload)


@pytest.fixture
def submission():
    return RawSubmission(content=b"dummy-pdf-bytes", mime_type="application/pdf", filename="answer.pdf")


@pytest.fixture
def extracted():
    return ExtractedDocument(text=EXTRACTED_TEXT, confidence=0.92, page_count=1)


@pytest.fixture
def processor_client():
    return FakeProcessorClient(make_document())


@pytest.fixture
def extractor(settings, processor_client):
    return DocumentExtractionClient(settings, processor_client=processor_client)


@pytest.fixture
def genai_client():
    return FakeGenaiClient("```json\n" + json.dumps(ANALYSIS_PAYLOAD) + "\n```")


@pytest.fixture
def analyzer(settings, genai_client):
    return AnswerAnalysisClient(settings, genai_client=genai_client)
