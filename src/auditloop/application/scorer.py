"""
SelfAuditScorer: composite scoring and the termination decision.

A pure function of its inputs: re-scoring the same report with the same
configuration always yields the same AuditScore and TerminationDecision.
"""

from collections.abc import Sequence

from auditloop.domain.models import (
    AnalysisArtifact,
    AuditScore,
    Decision,
    FailureCategory,
    IterationRecord,
    LoopConfig,
    RefinementGuidance,
    Requirement,
    Severity,
    TerminationDecision,
    ValidationReport,
)

# Hard ceiling on the overall score while any security finding is open
SECURITY_SCORE_CAP = 0.49

MAX_FOCUS_AREAS = 5

# Which collaborator a failure category is routed to during refinement
CATEGORY_COLLABORATORS = {
    FailureCategory.CORRECTNESS: "code_executor",
    FailureCategory.COMPILATION: "code_executor",
    FailureCategory.TIMEOUT: "caching_expert",
    FailureCategory.ARCHITECTURE: "architect",
    FailureCategory.COMPLETENESS: "task_planner",
    FailureCategory.SECURITY: "quality_auditor",
    FailureCategory.DISPATCH: "orchestrator",
}

CATEGORY_ACTIONS = {
    FailureCategory.CORRECTNESS: "Correct the logic producing wrong output",
    FailureCategory.COMPILATION: "Fix the build errors before anything else",
    FailureCategory.TIMEOUT: "Reduce running time on the slow examples",
    FailureCategory.ARCHITECTURE: "Restore the required layering and dependencies",
    FailureCategory.COMPLETENESS: "Revisit the analysis: add missing requirements "
    "or examples",
    FailureCategory.SECURITY: "Remove the reported vulnerability",
    FailureCategory.DISPATCH: "Retry the failed phase",
}


class SelfAuditScorer:
    """
    Converts a ValidationReport into an AuditScore and TerminationDecision.

    Decision guards are evaluated in order, first match wins:
    1. Critical failure with no iterations left -> ABORT
    2. Perfect score, all gates satisfied -> FINALIZE
    3. Score >= confidence threshold, all gates satisfied -> FINALIZE
       (only with early termination enabled)
    4. Iteration budget exhausted -> FINALIZE_WITH_WARNINGS
    5. Otherwise -> REFINE with guidance
    """

    def __init__(self, config: LoopConfig | None = None):
        self._config = config or LoopConfig()

    @property
    def config(self) -> LoopConfig:
        return self._config

    def audit(
        self,
        report: ValidationReport,
        analysis: AnalysisArtifact,
        history: Sequence[IterationRecord],
        iteration_index: int,
    ) -> tuple[AuditScore, TerminationDecision]:
        """Score a report and decide, using the last record for progress."""
        score = self.score(report, analysis.requirements)
        previous = history[-1] if history else None
        decision = self.decide(
            score, report, iteration_index=iteration_index, previous=previous
        )
        return score, decision

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def score(
        self, report: ValidationReport, requirements: Sequence[Requirement]
    ) -> AuditScore:
        """Compute the composite score of one report."""
        weights = self._config.weights
        test_score = report.score
        requirements_score = self.requirements_score(report, requirements)
        architecture_score = self.architecture_score(report)
        security_score = 0.0 if report.has_security_finding else 1.0

        overall = (
            weights.tests * test_score
            + weights.requirements * requirements_score
            + weights.architecture * architecture_score
            + weights.security * security_score
        ) / weights.total
        if report.has_security_finding:
            overall = min(overall, SECURITY_SCORE_CAP)
        # A candidate that does not build scores nothing
        if report.failures_in(FailureCategory.COMPILATION):
            overall = 0.0
        overall = min(max(overall, 0.0), 1.0)

        return AuditScore(
            test_score=test_score,
            requirements_score=requirements_score,
            architecture_score=architecture_score,
            security_score=security_score,
            overall=overall,
        )

    def requirements_score(
        self, report: ValidationReport, requirements: Sequence[Requirement]
    ) -> float:
        """Share of requirements exercised by at least one passing example."""
        declared = {r.requirement_id for r in requirements}
        if not declared:
            return 0.0
        covered = {
            rid
            for result in report.results
            if result.passed
            for rid in result.requirement_ids
        }
        return len(declared & covered) / len(declared)

    def architecture_score(self, report: ValidationReport) -> float:
        violations = len(report.failures_in(FailureCategory.ARCHITECTURE))
        if violations == 0:
            return 1.0
        checked = max(report.rules_checked, violations)
        return max(0.0, 1.0 - violations / checked)

    # -------------------------------------------------------------------------
    # Decision
    # -------------------------------------------------------------------------

    def decide(
        self,
        score: AuditScore,
        report: ValidationReport,
        *,
        iteration_index: int,
        previous: IterationRecord | None = None,
    ) -> TerminationDecision:
        """Apply the ordered decision guards."""
        config = self._config
        remaining = max(config.max_iterations - iteration_index, 0)
        critical = report.failures_at_least(Severity.CRITICAL)
        blocking = report.failures_at_least(Severity.MAJOR)
        architecture = report.failures_in(FailureCategory.ARCHITECTURE)
        defective = bool(report.failures_in(FailureCategory.COMPLETENESS))
        gates_met = (
            not architecture
            and not blocking
            and score.requirements_score >= config.requirements_coverage_min
        )

        if critical and remaining == 0:
            return TerminationDecision(
                decision=Decision.ABORT,
                confidence=score.overall,
                reason=f"{len(critical)} critical failure(s) cannot be fixed "
                "within the remaining iteration budget",
                analysis_defective=defective,
            )

        if gates_met and score.overall >= 1.0:
            return TerminationDecision(
                decision=Decision.FINALIZE,
                confidence=score.overall,
                reason="All examples, requirements and compliance checks passed",
            )

        if (
            config.early_termination
            and gates_met
            and score.overall >= config.confidence_threshold
        ):
            return TerminationDecision(
                decision=Decision.FINALIZE,
                confidence=score.overall,
                reason=f"Score {score.overall:.2f} meets confidence threshold "
                f"{config.confidence_threshold:.2f}",
            )

        if iteration_index >= config.max_iterations:
            return TerminationDecision(
                decision=Decision.FINALIZE_WITH_WARNINGS,
                confidence=score.overall,
                reason=f"Iteration budget of {config.max_iterations} exhausted "
                f"at score {score.overall:.2f}",
                analysis_defective=defective,
            )

        stuck = (
            previous is not None
            and previous.decision.decision is Decision.REFINE
            and score.overall <= previous.score.overall
        )
        return TerminationDecision(
            decision=Decision.REFINE,
            confidence=score.overall,
            reason=f"Score {score.overall:.2f} below threshold "
            f"{config.confidence_threshold:.2f} with "
            f"{len(report.failures)} open failure(s)",
            guidance=self.guidance(report, remaining),
            stuck=stuck,
            analysis_defective=defective,
        )

    def guidance(self, report: ValidationReport, remaining: int) -> RefinementGuidance:
        """Build refinement guidance from the most severe failures first."""
        # sorted() is stable: equal severities keep their reported order
        ordered = sorted(report.failures, key=lambda f: f.severity.rank)
        if not ordered:
            return RefinementGuidance(
                priority=Severity.MINOR,
                focus_areas=("overall score below the confidence threshold",),
                suggested_actions=tuple(report.suggestions),
                target_collaborators=("orchestrator",),
                estimated_remaining_iterations=1,
            )

        focus_areas = tuple(
            dict.fromkeys(f"{f.location}: {f.description}" for f in ordered)
        )[:MAX_FOCUS_AREAS]
        categories = tuple(dict.fromkeys(f.category for f in ordered))
        actions = tuple(CATEGORY_ACTIONS[c] for c in categories) + tuple(
            report.suggestions
        )
        collaborators = tuple(
            dict.fromkeys(CATEGORY_COLLABORATORS[c] for c in categories)
        )
        return RefinementGuidance(
            priority=ordered[0].severity,
            focus_areas=focus_areas,
            suggested_actions=actions,
            target_collaborators=collaborators,
            estimated_remaining_iterations=max(1, min(remaining, len(categories))),
        )
