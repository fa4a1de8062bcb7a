"""Tests for domain models: immutability, derived properties, validation."""

import dataclasses

import pytest

from auditloop.domain.exceptions import ConfigurationError
from auditloop.domain.models import (
    AnalysisArtifact,
    CodeArtifact,
    CodeFile,
    Decision,
    Example,
    Failure,
    FailureCategory,
    Finding,
    FinalOutcome,
    LoopConfig,
    OutcomeStatus,
    Requirement,
    ScoringWeights,
    Severity,
    TestResult,
    ValidationReport,
)


class TestAnalysisArtifact:
    def test_rejects_duplicate_requirement_ids(self) -> None:
        with pytest.raises(ValueError, match="Duplicate requirement ids: R1"):
            AnalysisArtifact(
                requirements=(Requirement("R1", "a"), Requirement("R1", "b")),
            )

    def test_rejects_duplicate_example_ids(self) -> None:
        with pytest.raises(ValueError, match="Duplicate example ids: e1"):
            AnalysisArtifact(
                requirements=(Requirement("R1", "a"),),
                examples=(Example("e1", "1", "2"), Example("e1", "3", "6")),
            )

    def test_requirement_ids_in_declared_order(
        self, sample_analysis: AnalysisArtifact
    ) -> None:
        assert sample_analysis.requirement_ids == ("R1", "R2")

    def test_is_frozen(self, sample_analysis: AnalysisArtifact) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            sample_analysis.examples = ()  # type: ignore[misc]


class TestCodeArtifact:
    def test_get_file(self) -> None:
        code = CodeArtifact(files=(CodeFile("a.py", "x = 1"), CodeFile("b.py", "")))

        assert code.get_file("a.py") == CodeFile("a.py", "x = 1")
        assert code.get_file("missing.py") is None

    def test_each_artifact_gets_unique_id(self) -> None:
        first = CodeArtifact(files=(CodeFile("a.py", ""),))
        second = CodeArtifact(files=(CodeFile("a.py", ""),))

        assert first.artifact_id != second.artifact_id


class TestValidationReport:
    def _report(self, *passed: bool, failures=()) -> ValidationReport:
        return ValidationReport(
            results=tuple(TestResult(f"e{i}", p) for i, p in enumerate(passed)),
            failures=failures,
        )

    def test_score_is_pass_ratio(self) -> None:
        report = self._report(True, True, True, False)

        assert report.total_count == 4
        assert report.passed_count == 3
        assert report.score == 0.75
        assert [r.example_id for r in report.failed_results] == ["e3"]

    def test_empty_report_scores_zero_and_does_not_pass(self) -> None:
        report = self._report()

        assert report.score == 0.0
        assert report.passed is False

    def test_passed_requires_no_failures(self) -> None:
        failure = Failure(
            FailureCategory.ARCHITECTURE, Severity.MINOR, "a.py", "layering"
        )

        assert self._report(True, True).passed is True
        assert self._report(True, True, failures=(failure,)).passed is False

    def test_failures_at_least_uses_severity_order(self) -> None:
        failures = (
            Failure(FailureCategory.SECURITY, Severity.CRITICAL, "a", "x"),
            Failure(FailureCategory.CORRECTNESS, Severity.MAJOR, "b", "y"),
            Failure(FailureCategory.COMPLETENESS, Severity.MINOR, "c", "z"),
        )
        report = self._report(True, failures=failures)

        assert report.failures_at_least(Severity.CRITICAL) == failures[:1]
        assert report.failures_at_least(Severity.MAJOR) == failures[:2]
        assert report.failures_in(FailureCategory.COMPLETENESS) == failures[2:]
        assert report.has_security_finding is True


class TestEnums:
    def test_severity_rank_orders_most_severe_first(self) -> None:
        ranked = sorted(Severity, key=lambda s: s.rank)

        assert ranked == [
            Severity.CRITICAL,
            Severity.MAJOR,
            Severity.MINOR,
            Severity.INFO,
        ]

    def test_only_refine_is_non_terminal(self) -> None:
        assert [d for d in Decision if not d.is_terminal] == [Decision.REFINE]


class TestFinding:
    def test_to_failure_keeps_all_fields(self) -> None:
        finding = Finding(
            FailureCategory.SECURITY, Severity.CRITICAL, "main.py", "eval on input"
        )

        failure = finding.to_failure()

        assert failure.category is FailureCategory.SECURITY
        assert failure.severity is Severity.CRITICAL
        assert failure.location == "main.py"
        assert failure.description == "eval on input"


class TestConfiguration:
    def test_defaults(self) -> None:
        config = LoopConfig()

        assert config.max_iterations == 5
        assert config.confidence_threshold == 0.85
        assert config.requirements_coverage_min == 0.9
        assert config.early_termination is True
        assert config.weights == ScoringWeights(0.4, 0.3, 0.2, 0.1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_iterations": 0},
            {"confidence_threshold": 0.0},
            {"confidence_threshold": 1.5},
            {"requirements_coverage_min": -0.1},
            {"example_timeout": 0},
            {"max_workers": 0},
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ConfigurationError):
            LoopConfig(**kwargs)

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(TypeError):
            LoopConfig(max_iter=3)  # type: ignore[call-arg]

    def test_weights_must_be_non_negative(self) -> None:
        with pytest.raises(ConfigurationError, match="non-negative"):
            ScoringWeights(tests=-0.1)

    def test_weights_must_not_all_be_zero(self) -> None:
        with pytest.raises(ConfigurationError, match="all be zero"):
            ScoringWeights(0.0, 0.0, 0.0, 0.0)


class TestFinalOutcome:
    def test_partial_log_is_iteration_log(self) -> None:
        outcome = FinalOutcome(
            status=OutcomeStatus.ABORTED, iteration_log=(), reason="cancelled"
        )

        assert outcome.succeeded is False
        assert outcome.partial_log == ()
