"""Tests for the phase response schemas."""

import pytest
from pydantic import ValidationError

from auditloop.domain.models import (
    AnalysisArtifact,
    CodeArtifact,
    FailureCategory,
    HypothesisArtifact,
    Phase,
    ReviewArtifact,
    Severity,
)
from auditloop.schemas import AnalysisPayload, parse_phase_payload


class TestAnalysisPayload:
    def test_converts_to_artifact(self) -> None:
        artifact = parse_phase_payload(
            Phase.ANALYZE,
            {
                "requirements": [{"id": "R1", "description": "adds"}],
                "examples": [
                    {
                        "id": "e1",
                        "input": "1 2",
                        "expected_output": "3",
                        "requirement_ids": ["R1"],
                    }
                ],
            },
        )

        assert isinstance(artifact, AnalysisArtifact)
        assert artifact.requirement_ids == ("R1",)
        assert artifact.examples[0].requirement_ids == ("R1",)
        assert artifact.risks == ()

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValidationError, match="requirement ids must be unique"):
            AnalysisPayload.model_validate(
                {
                    "requirements": [
                        {"id": "R1", "description": "a"},
                        {"id": "R1", "description": "b"},
                    ]
                }
            )

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_phase_payload(
                Phase.ANALYZE, {"requirements": [], "summary": "extra field"}
            )

    def test_missing_requirements_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_phase_payload(Phase.ANALYZE, {"examples": []})


class TestOtherPhases:
    def test_hypothesis(self) -> None:
        artifact = parse_phase_payload(
            Phase.HYPOTHESIZE,
            {
                "approach": "loop",
                "tasks": [{"collaborator": "architect", "sub_goal": "layout"}],
            },
        )

        assert isinstance(artifact, HypothesisArtifact)
        assert artifact.tasks[0].collaborator == "architect"

    def test_empty_approach_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_phase_payload(Phase.HYPOTHESIZE, {"approach": ""})

    def test_code_requires_a_file(self) -> None:
        with pytest.raises(ValidationError):
            parse_phase_payload(Phase.CODE, {"files": []})

    def test_code(self) -> None:
        artifact = parse_phase_payload(
            Phase.CODE, {"files": [{"path": "main.py", "content": "print(1)"}]}
        )

        assert isinstance(artifact, CodeArtifact)
        assert artifact.files[0].path == "main.py"

    def test_review_findings_become_domain_enums(self) -> None:
        artifact = parse_phase_payload(
            Phase.VALIDATE,
            {
                "findings": [
                    {
                        "category": "security",
                        "severity": "critical",
                        "location": "main.py",
                        "description": "eval on input",
                    }
                ],
                "suggestions": ["use ast.literal_eval"],
            },
        )

        assert isinstance(artifact, ReviewArtifact)
        assert artifact.findings[0].category is FailureCategory.SECURITY
        assert artifact.findings[0].severity is Severity.CRITICAL
        assert artifact.suggestions == ("use ast.literal_eval",)

    def test_review_rejects_unknown_category(self) -> None:
        with pytest.raises(ValidationError):
            parse_phase_payload(
                Phase.VALIDATE,
                {"findings": [{"category": "style", "severity": "minor",
                               "description": "naming"}]},
            )
