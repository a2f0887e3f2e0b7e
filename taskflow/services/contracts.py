from __future__ import annotations
from datetime import datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# camelCase on the wire, snake_case in Python
WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)
FROZEN_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

Category = Literal["Keywords", "Grammar", "Content Accuracy", "Completeness"]
CATEGORIES: List[str] = ["Keywords", "Grammar", "Content Accuracy", "Completeness"]

# ---------- Pipeline input ----------

class RawSubmission(BaseModel):
    """An uploaded answer script. Lives for one request and is never stored."""
    model_config = ConfigDict(frozen=True)

    content: bytes
    mime_type: str = "application/octet-stream"
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.content)

# ---------- Extraction ----------

class ExtractedDocument(BaseModel):
    model_config = FROZEN_WIRE

    text: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    page_count: int = Field(default=0, ge=0)

# ---------- Analysis ----------

class CategoryScore(BaseModel):
    model_config = FROZEN_WIRE

    category: Category
    score: float = Field(ge=0, le=100)
    max_score: float = Field(default=100, gt=0)

class ContentBreakdown(BaseModel):
    # percentages; no sum-to-100 rule upstream
    model_config = FROZEN_WIRE

    matched: float = 0
    missing: float = 0
    extra: float = 0

class AnswerAnalysis(BaseModel):
    model_config = FROZEN_WIRE

    score: float = Field(ge=0, le=100)
    category_scores: List[CategoryScore] = Field(min_length=1)
    missing_concepts: List[str] = Field(default_factory=list)
    feedback: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    content_breakdown: ContentBreakdown = Field(default_factory=ContentBreakdown)

# ---------- Derived presentation data ----------

class ConceptMastery(BaseModel):
    model_config = WIRE

    name: str
    score: int

class AnalysisSummary(BaseModel):
    model_config = WIRE

    letter_grade: Literal["A", "B", "C", "D", "F"]
    concept_mastery: List[ConceptMastery]
    missing_concepts: List[str]
    content_breakdown: ContentBreakdown

# ---------- Wire envelopes ----------

class ProcessorDetails(BaseModel):
    model_config = WIRE

    project_id: Optional[str] = None
    processor_id: Optional[str] = None
    location: Optional[str] = None

class ProcessDocumentResponse(BaseModel):
    text: str
    confidence: float
    pages: int

    @classmethod
    def from_document(cls, doc: ExtractedDocument) -> "ProcessDocumentResponse":
        return cls(text=doc.text, confidence=doc.confidence, pages=doc.page_count)

class ProcessDocumentError(BaseModel):
    success: bool = False
    error: str
    details: ProcessorDetails

class AnalyzeAnswerRequest(BaseModel):
    # optional so empty input is reported as a ValidationError envelope, not a 422
    model_config = WIRE

    student_answer: Optional[str] = None
    reference_answer: Optional[str] = None

class AnalyzeAnswerResponse(AnswerAnalysis):
    success: bool = True

class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    solution: Optional[str] = None

class GradeSubmissionResponse(BaseModel):
    model_config = WIRE

    success: bool
    state: str
    progress: int
    history: List[str]
    document: Optional[ProcessDocumentResponse] = None
    analysis: Optional[AnswerAnalysis] = None
    summary: Optional[AnalysisSummary] = None
    stage: Optional[str] = None
    error: Optional[str] = None
    solution: Optional[str] = None

class HealthResponse(BaseModel):
    model_config = WIRE

    status: str
    uptime: float
    date: datetime
    model: str
    extraction_configured: bool
    analysis_configured: bool
