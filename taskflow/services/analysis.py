import json
import logging
from typing import Optional

import backoff
import httpx
from aiolimiter import AsyncLimiter
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError as SchemaError

from taskflow.errors import (
    AnalysisConfigurationError,
    AnalysisTransportError,
    MalformedAnalysisError,
    ValidationError,
)
from taskflow.settings import Settings
from .contracts import AnswerAnalysis

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """
Analyze this student answer against the reference answer. Provide a detailed analysis with:
1. Overall score (0-100)
2. Category scores (Keywords, Grammar, Content Accuracy, Completeness) with maxScore 100 each
3. List of missing concepts
4. Constructive feedback
5. List of strengths
6. List of improvements
7. Content breakdown (matched, missing, extra percentages)

Return as valid JSON with this exact structure:
{{
  "score": number,
  "categoryScores": [
    {{"category": "Keywords", "score": number, "maxScore": 100}},
    {{"category": "Grammar", "score": number, "maxScore": 100}},
    {{"category": "Content Accuracy", "score": number, "maxScore": 100}},
    {{"category": "Completeness", "score": number, "maxScore": 100}}
  ],
  "missingConcepts": string[],
  "feedback": string,
  "strengths": string[],
  "improvements": string[],
  "contentBreakdown": {{
    "matched": number,
    "missing": number,
    "extra": number
  }}
}}

STUDENT ANSWER:
{student_answer}

REFERENCE ANSWER:
{reference_answer}
""".strip()

# statuses that mean the key or model name is wrong rather than the network
CONFIGURATION_STATUSES = (401, 403, 404)


def build_analysis_prompt(student_answer: str, reference_answer: str) -> str:
    return ANALYSIS_PROMPT.format(
        student_answer=student_answer,
        reference_answer=reference_answer,
    )


def strip_code_fences(text: Optional[str]) -> str:
    """Models wrap JSON in ```json fences even when told not to."""
    return (text or "").replace("```json", "").replace("```", "").strip()


def parse_analysis(raw_text: Optional[str]) -> AnswerAnalysis:
    clean = strip_code_fences(raw_text)
    try:
        data = json.loads(clean)
    except json.JSONDecodeError as e:
        raise MalformedAnalysisError(f"Failed to parse API response: {clean}", raw_text=clean) from e

    if not isinstance(data, dict) or data.get("score") is None or not data.get("categoryScores"):
        raise MalformedAnalysisError("Invalid analysis result structure", raw_text=clean)

    try:
        return AnswerAnalysis.model_validate(data)
    except SchemaError as e:
        raise MalformedAnalysisError(
            f"Invalid analysis result structure: {e.error_count()} field error(s)",
            raw_text=clean,
        ) from e


def _is_permanent(e: Exception) -> bool:
    if isinstance(e, genai_errors.APIError):
        return not (e.code == 429 or (e.code or 0) >= 500)
    return False


def _log_backoff(details) -> None:
    logger.warning(
        f"Gemini call failed ({details['exception']}), "
        f"retry {details['tries']} in {details['wait']:.1f}s"
    )


class AnswerAnalysisClient:
    def __init__(self, settings: Settings, genai_client=None) -> None:
        self.settings = settings
        self._genai_client = genai_client
        self._limiter = AsyncLimiter(settings.rate_limit_per_minute, 60)
        self._generate_with_retry = backoff.on_exception(
            backoff.expo,
            (genai_errors.APIError, httpx.TransportError),
            max_tries=settings.max_attempts,
            giveup=_is_permanent,
            on_backoff=_log_backoff,
            factor=settings.retry_delay,
            max_value=10,
        )(self._generate)

    def _client(self):
        if self._genai_client is None:
            self._genai_client = genai.Client(api_key=self.settings.gemini_api_key)
        return self._genai_client

    async def _generate(self, prompt: str) -> str:
        async with self._limiter:
            response = await self._client().aio.models.generate_content(
                model=self.settings.gemini_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=self.settings.gemini_temperature,
                    response_mime_type="application/json",
                ),
            )
        return response.text or ""

    async def analyze(self, student_answer: str, reference_answer: str) -> AnswerAnalysis:
        if not (student_answer or "").strip() or not (reference_answer or "").strip():
            raise ValidationError("Both studentAnswer and referenceAnswer are required")
        self.settings.require_analysis()

        prompt = build_analysis_prompt(student_answer, reference_answer)
        try:
            raw_text = await self._generate_with_retry(prompt)
        except genai_errors.APIError as e:
            message = e.message or str(e)
            if e.code in CONFIGURATION_STATUSES:
                raise AnalysisConfigurationError(message, status_code=e.code) from e
            raise AnalysisTransportError(message, status_code=e.code or 500) from e
        except httpx.TimeoutException as e:
            raise AnalysisTransportError(f"Gemini request timed out: {e}") from e
        except httpx.TransportError as e:
            raise AnalysisTransportError(f"Gemini request failed: {e}") from e

        return parse_analysis(raw_text)
