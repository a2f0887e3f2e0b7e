# taskflow/services/report.py
from __future__ import annotations
from typing import List

from .contracts import AnalysisSummary, AnswerAnalysis, ConceptMastery, ExtractedDocument
from .orchestrator import PipelineRun, PipelineState

GRADE_BANDS = [(90, "A"), (80, "B"), (70, "C"), (60, "D")]


def letter_grade(score: float) -> str:
    for floor, letter in GRADE_BANDS:
        if score >= floor:
            return letter
    return "F"


def summarize(analysis: AnswerAnalysis) -> AnalysisSummary:
    mastery = [
        ConceptMastery(name=c.category, score=round(c.score / c.max_score * 100))
        for c in analysis.category_scores
    ]
    return AnalysisSummary(
        letter_grade=letter_grade(analysis.score),
        concept_mastery=mastery,
        missing_concepts=list(analysis.missing_concepts),
        content_breakdown=analysis.content_breakdown,
    )


def _bullets(items: List[str], empty: str) -> List[str]:
    return [f"- {item}" for item in items] or [f"- {empty}"]


def _header(analysis: AnswerAnalysis, document: ExtractedDocument) -> str:
    lines = []
    lines.append("# Answer Analysis Report\n")
    lines.append("## Overview")
    lines.append(f"- **Score:** {analysis.score:g}/100")
    lines.append(f"- **Grade:** {letter_grade(analysis.score)}")
    lines.append(f"- **Pages read:** {document.page_count}")
    lines.append(f"- **Extraction confidence:** {round(document.confidence * 100)}%\n")
    return "\n".join(lines)


def _category_block(analysis: AnswerAnalysis) -> str:
    lines = ["## Category Scores\n", "| Category | Score |", "| --- | --- |"]
    for c in analysis.category_scores:
        lines.append(f"| {c.category} | {c.score:g}/{c.max_score:g} |")
    b = analysis.content_breakdown
    lines.append(f"\nMatched {b.matched:g}% · Missing {b.missing:g}% · Extra {b.extra:g}%")
    return "\n".join(lines)


def _feedback_block(analysis: AnswerAnalysis) -> str:
    lines = ["## Feedback\n", analysis.feedback or "No feedback returned."]
    lines.append("\n### Strengths")
    lines.extend(_bullets(analysis.strengths, "None identified."))
    lines.append("\n### Improvements")
    lines.extend(_bullets(analysis.improvements, "None suggested."))
    lines.append("\n### Missing Concepts")
    lines.extend(_bullets(analysis.missing_concepts, "Nothing missing."))
    return "\n".join(lines)


def build_markdown(run: PipelineRun) -> str:
    if run.state is PipelineState.ERROR:
        return "\n".join([
            "# Answer Analysis Report\n",
            f"Grading stopped while {run.failed_stage}: {run.error.message}",
        ])
    if run.state is not PipelineState.COMPLETE:
        raise ValueError(f"Run has not finished (state {run.state.value})")

    blocks = [
        _header(run.analysis, run.document),
        _category_block(run.analysis),
        _feedback_block(run.analysis),
    ]
    return "\n\n".join(blocks)
