"""
Test: presentation data and Markdown report.
"""
import pytest

from taskflow.errors import ExtractionTransportError
from taskflow.services.contracts import AnswerAnalysis
from taskflow.services.orchestrator import PipelineRun, PipelineState
from taskflow.services.report import build_markdown, letter_grade, summarize


def finished_run(document, analysis):
    run = PipelineRun()
    run.advance(PipelineState.EXTRACTING)
    run.document = document
    run.advance(PipelineState.ANALYZING)
    run.analysis = analysis
    run.advance(PipelineState.COMPLETE)
    return run


class TestLetterGrade:
    @pytest.mark.parametrize("score,grade", [
        (100, "A"), (90, "A"), (89.9, "B"), (80, "B"),
        (79, "C"), (70, "C"), (65, "D"), (60, "D"), (59, "F"), (0, "F"),
    ])
    def test_bands(self, score, grade):
        assert letter_grade(score) == grade


class TestSummarize:
    def test_summary(self, expected_analysis):
        summary = summarize(expected_analysis)
        assert summary.letter_grade == "B"
        assert [(m.name, m.score) for m in summary.concept_mastery] == [
            ("Keywords", 90), ("Grammar", 80), ("Content Accuracy", 85), ("Completeness", 75),
        ]
        assert summary.content_breakdown == expected_analysis.content_breakdown

    def test_mastery_is_relative_to_max_score(self, analysis_payload):
        analysis_payload["categoryScores"] = [{"category": "Grammar", "score": 30, "maxScore": 40}]
        summary = summarize(AnswerAnalysis.model_validate(analysis_payload))
        assert summary.concept_mastery[0].score == 75

    def test_serializes_camel_case(self, expected_analysis):
        data = summarize(expected_analysis).model_dump(by_alias=True)
        assert set(data) == {"letterGrade", "conceptMastery", "missingConcepts", "contentBreakdown"}


class TestBuildMarkdown:
    def test_complete_run(self, extracted, expected_analysis):
        md = build_markdown(finished_run(extracted, expected_analysis))
        assert md.startswith("# Answer Analysis Report")
        assert "- **Score:** 85/100" in md
        assert "- **Grade:** B" in md
        assert "| Content Accuracy | 85/100 |" in md
        assert "- add examples" in md
        assert "- Nothing missing." in md
        assert "- **Extraction confidence:** 92%" in md

    def test_failed_run(self):
        run = PipelineRun()
        run.advance(PipelineState.EXTRACTING)
        run.fail(ExtractionTransportError("Document AI unavailable"))
        md = build_markdown(run)
        assert "Grading stopped while extracting: Document AI unavailable" in md

    def test_unfinished_run(self):
        with pytest.raises(ValueError):
            build_markdown(PipelineRun())
