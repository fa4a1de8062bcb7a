"""
LoopController: drives ANALYZE -> HYPOTHESIZE -> CODE -> VALIDATE -> audit.

Owns the per-run iteration history and applies the termination policy.
Each run keeps its own state; a controller instance can serve several runs,
sequentially or from different threads, without sharing mutable state.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import TypeVar, cast

from auditloop.application.cancellation import CancellationToken
from auditloop.application.dispatcher import AgentDispatcher
from auditloop.application.feedback import FeedbackSummarizer
from auditloop.application.scorer import SelfAuditScorer
from auditloop.application.validation import (
    Equivalence,
    ValidationRunner,
    exact_match,
)
from auditloop.domain.exceptions import (
    DispatchError,
    ExecutorFault,
    RunCancelled,
    Unrecoverable,
)
from auditloop.domain.history import IterationHistory
from auditloop.domain.interfaces import (
    BuildExecutorInterface,
    ComplianceRuleInterface,
    IterationHistoryInterface,
    TextGeneratorInterface,
)
from auditloop.domain.models import (
    AnalysisArtifact,
    CodeArtifact,
    ContextPackage,
    Decision,
    Failure,
    FailureCategory,
    FinalOutcome,
    HypothesisArtifact,
    IterationRecord,
    LoopConfig,
    LoopState,
    OutcomeStatus,
    Phase,
    Request,
    ReviewArtifact,
    Severity,
    TerminationDecision,
    ValidationReport,
)
from auditloop.schemas import PhaseArtifact

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TERMINAL_STATES = (LoopState.FINALIZED, LoopState.ABORTED)


@dataclass
class _LiveIteration:
    """The single uncommitted iteration. Never stored in the history."""

    index: int
    analysis: AnalysisArtifact | None = None
    hypothesis: HypothesisArtifact | None = None
    code: CodeArtifact | None = None
    report: ValidationReport | None = None
    focus: str | None = None


@dataclass
class _Run:
    """Collaborators and state owned by one call to run()."""

    request: Request
    config: LoopConfig
    scorer: SelfAuditScorer
    dispatcher: AgentDispatcher
    runner: ValidationRunner
    history: IterationHistoryInterface
    cancel_token: CancellationToken | None = None


class LoopController:
    """
    Sequences phases and applies the self-audit verdict.

    REFINE loops back to HYPOTHESIZING, or to ANALYZING when the audit
    flags the analysis itself as defective. Only Unrecoverable collaborator
    faults and cancellation leave the loop outside the audit.
    """

    def __init__(
        self,
        dispatcher: AgentDispatcher,
        runner: ValidationRunner,
        scorer: SelfAuditScorer | None = None,
        config: LoopConfig | None = None,
        compliance_rules: Sequence[ComplianceRuleInterface] = (),
        history_factory: Callable[[], IterationHistoryInterface] = IterationHistory,
    ):
        """
        Args:
            dispatcher: Routes phases to the text-generation collaborator
            runner: Validates code against examples and compliance rules
            scorer: Self-audit scorer (built from config if None)
            config: Loop configuration (defaults to the scorer's, then LoopConfig())
            compliance_rules: Structural rules passed to every validation
            history_factory: Creates a fresh history for each run
        """
        if config is None:
            config = scorer.config if scorer is not None else LoopConfig()
        self._dispatcher = dispatcher
        self._runner = runner
        self._config = config
        self._scorer = scorer or SelfAuditScorer(config)
        self._rules = tuple(compliance_rules)
        self._history_factory = history_factory
        self._summarizer = FeedbackSummarizer()

    @classmethod
    def from_collaborators(
        cls,
        generator: TextGeneratorInterface,
        executor: BuildExecutorInterface,
        config: LoopConfig | None = None,
        compliance_rules: Sequence[ComplianceRuleInterface] = (),
        equivalence: Equivalence = exact_match,
    ) -> "LoopController":
        """Wire a controller whose timeouts and pool size follow config."""
        config = config or LoopConfig()
        dispatcher = AgentDispatcher(generator, call_timeout=config.call_timeout)
        runner = ValidationRunner(
            executor,
            equivalence=equivalence,
            timeout=config.example_timeout,
            max_workers=config.max_workers,
        )
        return cls(
            dispatcher,
            runner,
            config=config,
            compliance_rules=compliance_rules,
        )

    @property
    def config(self) -> LoopConfig:
        return self._config

    def run(
        self,
        request: Request,
        config: LoopConfig | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> FinalOutcome:
        """
        Run the loop to a terminal state.

        Args:
            request: The problem statement and constraints
            config: Per-run override of the controller's configuration,
                including the collaborator timeouts and worker count
            cancel_token: Optional external cancellation signal

        Returns:
            FinalOutcome carrying the full iteration history
        """
        run = self._start(request, config, cancel_token)
        live = _LiveIteration(index=1)
        state = LoopState.ANALYZING
        logger.info(
            "Starting run %s (max_iterations=%d)",
            request.request_id,
            run.config.max_iterations,
        )

        try:
            while state not in _TERMINAL_STATES:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                state, live = self._step(state, live, run)
        except RunCancelled as e:
            logger.warning("Run %s cancelled in %s", request.request_id, state.value)
            return FinalOutcome(
                status=OutcomeStatus.ABORTED,
                iteration_log=run.history.records(),
                reason=e.reason,
            )
        except Unrecoverable as e:
            logger.error("Run %s aborted: %s", request.request_id, e)
            return FinalOutcome(
                status=OutcomeStatus.ABORTED,
                iteration_log=run.history.records(),
                reason=str(e),
                failures=(
                    Failure(
                        category=FailureCategory.DISPATCH,
                        severity=Severity.CRITICAL,
                        location=e.phase.value,
                        description=str(e.cause),
                    ),
                ),
            )

        return self._outcome(run.history.records())

    def _start(
        self,
        request: Request,
        config: LoopConfig | None,
        cancel_token: CancellationToken | None,
    ) -> _Run:
        """Build the per-run context; a config override rebuilds the limits."""
        if config is None:
            return _Run(
                request=request,
                config=self._config,
                scorer=self._scorer,
                dispatcher=self._dispatcher,
                runner=self._runner,
                history=self._history_factory(),
                cancel_token=cancel_token,
            )
        return _Run(
            request=request,
            config=config,
            scorer=SelfAuditScorer(config),
            dispatcher=self._dispatcher.with_timeout(config.call_timeout),
            runner=self._runner.with_limits(
                timeout=config.example_timeout, max_workers=config.max_workers
            ),
            history=self._history_factory(),
            cancel_token=cancel_token,
        )

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def _step(
        self, state: LoopState, live: _LiveIteration, run: _Run
    ) -> tuple[LoopState, _LiveIteration]:
        """Advance one state. Returns the next state and live iteration."""
        if state is LoopState.ANALYZING:
            live.analysis = cast(
                AnalysisArtifact, self._dispatch(Phase.ANALYZE, live, run)
            )
            return LoopState.HYPOTHESIZING, live

        if state is LoopState.HYPOTHESIZING:
            live.hypothesis = cast(
                HypothesisArtifact, self._dispatch(Phase.HYPOTHESIZE, live, run)
            )
            return LoopState.CODING, live

        if state is LoopState.CODING:
            live.code = cast(CodeArtifact, self._dispatch(Phase.CODE, live, run))
            return LoopState.VALIDATING, live

        if state is LoopState.VALIDATING:
            review = cast(ReviewArtifact, self._dispatch(Phase.VALIDATE, live, run))
            live.report = self._validate(review, live, run)
            return LoopState.AUDITING, live

        if state is LoopState.AUDITING:
            record = self._audit(live, run)
            run.history.append(record)
            decision = record.decision.decision
            logger.info(
                "Iteration %d: overall=%.3f decision=%s (%s)",
                record.iteration_index,
                record.score.overall,
                decision.value,
                record.decision.reason,
            )
            if decision is Decision.REFINE:
                return LoopState.REFINING, live
            if decision is Decision.ABORT:
                return LoopState.ABORTED, live
            return LoopState.FINALIZED, live

        if state is LoopState.REFINING:
            records = run.history.records()
            latest = records[-1]
            guidance = latest.decision.guidance
            focus = (
                self._summarizer.render_focus(guidance, records)
                if guidance is not None
                else None
            )
            reanalyze = (
                latest.decision.analysis_defective and run.config.reanalyze_on_defect
            )
            next_live = _LiveIteration(
                index=live.index + 1,
                analysis=None if reanalyze else latest.analysis,
                focus=focus,
            )
            if reanalyze:
                logger.info("Analysis flagged defective: returning to ANALYZE")
                return LoopState.ANALYZING, next_live
            return LoopState.HYPOTHESIZING, next_live

        raise ValueError(f"No transition from terminal state {state.value}")

    def _audit(self, live: _LiveIteration, run: _Run) -> IterationRecord:
        """Score the live iteration and freeze it into a record."""
        analysis = self._require(live.analysis)
        report = self._require(live.report)
        score, decision = run.scorer.audit(
            report, analysis, run.history.records(), live.index
        )
        decision = self._apply_overrides(decision, live.index, run.config)
        return IterationRecord(
            iteration_index=live.index,
            analysis=analysis,
            hypothesis=self._require(live.hypothesis),
            code=self._require(live.code),
            report=report,
            score=score,
            decision=decision,
        )

    def _apply_overrides(
        self, decision: TerminationDecision, index: int, config: LoopConfig
    ) -> TerminationDecision:
        """Force termination where the controller's budget demands it."""
        if decision.decision is not Decision.REFINE:
            return decision
        if index >= config.max_iterations:
            logger.warning("Iteration budget exhausted: forcing finalize")
            return replace(
                decision,
                decision=Decision.FINALIZE_WITH_WARNINGS,
                reason=f"Iteration budget of {config.max_iterations} exhausted: "
                f"{decision.reason}",
                guidance=None,
            )
        if decision.stuck and config.escalate_on_stuck:
            logger.warning("No progress over consecutive refinements: escalating")
            return replace(
                decision,
                decision=Decision.FINALIZE_WITH_WARNINGS,
                reason=f"No progress over consecutive refinements: {decision.reason}",
                guidance=None,
            )
        return decision

    def _dispatch(self, phase: Phase, live: _LiveIteration, run: _Run) -> PhaseArtifact:
        """Dispatch one phase; a second consecutive failure is Unrecoverable."""
        context = ContextPackage(
            request=run.request,
            analysis=live.analysis,
            history=run.history.records(),
            specific_focus=live.focus,
            hypothesis=live.hypothesis,
            code=live.code,
        )
        logger.info("Iteration %d: %s", live.index, phase.value)
        try:
            return run.dispatcher.invoke(phase, context, run.cancel_token)
        except DispatchError as e:
            logger.warning("Dispatch failed, retrying once: %s", e)
        try:
            return run.dispatcher.invoke(phase, context, run.cancel_token)
        except DispatchError as e:
            raise Unrecoverable(phase, live.index, e) from e

    def _validate(
        self, review: ReviewArtifact, live: _LiveIteration, run: _Run
    ) -> ValidationReport:
        """Run the validation; a second consecutive executor fault is Unrecoverable."""
        analysis, code = self._require(live.analysis), self._require(live.code)

        def attempt() -> ValidationReport:
            return run.runner.validate(
                code,
                analysis.examples,
                self._rules,
                requirements=analysis.requirements,
                review=review,
                cancel_token=run.cancel_token,
            )

        try:
            return attempt()
        except ExecutorFault as e:
            logger.warning("Validation failed, retrying once: %s", e)
        try:
            return attempt()
        except ExecutorFault as e:
            raise Unrecoverable(Phase.VALIDATE, live.index, e) from e

    # -------------------------------------------------------------------------
    # Outcome
    # -------------------------------------------------------------------------

    def _outcome(self, records: tuple[IterationRecord, ...]) -> FinalOutcome:
        latest = records[-1]
        decision = latest.decision
        if decision.decision is Decision.FINALIZE:
            return FinalOutcome(
                status=OutcomeStatus.SUCCEEDED,
                iteration_log=records,
                reason=decision.reason,
                solution=latest.code,
                evidence=latest.report,
            )
        if decision.decision is Decision.FINALIZE_WITH_WARNINGS:
            warnings = tuple(f for record in records for f in record.report.failures)
            return FinalOutcome(
                status=OutcomeStatus.MAX_ITERATIONS_REACHED,
                iteration_log=records,
                reason=decision.reason,
                solution=latest.code,
                evidence=latest.report,
                warnings=warnings,
            )
        return FinalOutcome(
            status=OutcomeStatus.ABORTED,
            iteration_log=records,
            reason=decision.reason,
            evidence=latest.report,
            failures=latest.report.failures_at_least(Severity.CRITICAL),
        )

    @staticmethod
    def _require(value: T | None) -> T:
        if value is None:
            raise ValueError("Phase artifact missing from the live iteration")
        return value
