"""
ValidationRunner: executes a candidate against the analysis examples.

Examples run concurrently on a bounded pool, compliance rules run
independently, and everything is folded into one immutable
ValidationReport.
"""

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

from auditloop.application.cancellation import CancellationToken, wait_for
from auditloop.domain.exceptions import (
    BuildFailure,
    ExecutionTimeout,
    ExecutorFault,
    RunCancelled,
)
from auditloop.domain.interfaces import BuildExecutorInterface, ComplianceRuleInterface
from auditloop.domain.models import (
    CodeArtifact,
    Example,
    ExecutionResult,
    Failure,
    FailureCategory,
    Requirement,
    ReviewArtifact,
    Severity,
    TestResult,
    ValidationReport,
)

logger = logging.getLogger(__name__)

Equivalence = Callable[[str, str], bool]

# Raw outcome of one example run before comparison
RunOutcome = ExecutionResult | BuildFailure | ExecutionTimeout


def exact_match(actual: str, expected: str) -> bool:
    """Strict string equality."""
    return actual == expected


def normalized_match(actual: str, expected: str) -> bool:
    """Equality after collapsing all whitespace runs."""
    return actual.split() == expected.split()


class ValidationRunner:
    """
    Produces a ValidationReport for one CodeArtifact.

    A build failure on any example short-circuits the whole report: every
    TestResult fails and a single shared COMPILATION failure is recorded.

    The per-example timeout is enforced here as well as handed to the
    executor: a run still going when it expires is recorded as a TIMEOUT
    and its worker thread is abandoned.
    """

    def __init__(
        self,
        executor: BuildExecutorInterface,
        equivalence: Equivalence = exact_match,
        timeout: float = 60.0,
        max_workers: int = 4,
    ):
        """
        Args:
            executor: The build/execute collaborator
            equivalence: Predicate (actual, expected) -> bool
            timeout: Seconds allowed per example
            max_workers: Upper bound on concurrent example runs
        """
        self._executor = executor
        self._equivalence = equivalence
        self._timeout = timeout
        self._max_workers = max_workers

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def with_limits(self, timeout: float, max_workers: int) -> "ValidationRunner":
        """A runner sharing executor and equivalence, with other limits."""
        return ValidationRunner(
            self._executor,
            equivalence=self._equivalence,
            timeout=timeout,
            max_workers=max_workers,
        )

    def validate(
        self,
        code: CodeArtifact,
        examples: Sequence[Example],
        compliance_rules: Sequence[ComplianceRuleInterface] = (),
        *,
        requirements: Sequence[Requirement] | None = None,
        review: ReviewArtifact | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ValidationReport:
        """
        Validate a candidate.

        Args:
            code: The candidate solution
            examples: Input/expected-output pairs from the analysis
            compliance_rules: Structural rules evaluated independently
            requirements: Declared requirements, checked for completeness
            review: Collaborator review whose findings join the failures
            cancel_token: Stops waiting on example runs when cancelled

        Returns:
            The immutable ValidationReport

        Raises:
            ExecutorFault: If the executor fails other than by build
                failure or timeout
            RunCancelled: If the token is cancelled while examples run
        """
        examples = tuple(examples)
        failures: list[Failure] = self._check_completeness(examples, requirements)

        results: tuple[TestResult, ...] = ()
        if examples:
            outcomes = self._execute_all(code, examples, cancel_token)
            build_error = next(
                (o for o in outcomes.values() if isinstance(o, BuildFailure)), None
            )
            if build_error is not None:
                results, build_failure = self._short_circuit(examples, build_error)
                failures.append(build_failure)
            else:
                evaluated = [
                    self._evaluate(e, outcomes[e.example_id]) for e in examples
                ]
                results = tuple(result for result, _ in evaluated)
                failures.extend(f for _, f in evaluated if f is not None)

        for rule in compliance_rules:
            failures.extend(rule.check(code))

        suggestions: tuple[str, ...] = ()
        if review is not None:
            failures.extend(finding.to_failure() for finding in review.findings)
            suggestions = review.suggestions

        report = ValidationReport(
            results=results,
            failures=tuple(failures),
            suggestions=suggestions,
            rules_checked=sum(
                1
                for rule in compliance_rules
                if rule.category is FailureCategory.ARCHITECTURE
            ),
        )
        logger.info(
            "Validated %s: %d/%d examples passed, %d failure(s)",
            code.artifact_id,
            report.passed_count,
            report.total_count,
            len(report.failures),
        )
        return report

    def _execute_all(
        self,
        code: CodeArtifact,
        examples: tuple[Example, ...],
        cancel_token: CancellationToken | None,
    ) -> dict[str, RunOutcome]:
        """Run every example; results keyed by example id."""
        workers = min(self._max_workers, len(examples))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                example.example_id: pool.submit(
                    self._run_one, code, example, cancel_token
                )
                for example in examples
            }
            return {example_id: f.result() for example_id, f in futures.items()}

    def _run_one(
        self,
        code: CodeArtifact,
        example: Example,
        cancel_token: CancellationToken | None,
    ) -> RunOutcome:
        """Run one example under the runner's own deadline."""
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        worker = ThreadPoolExecutor(max_workers=1)
        future = worker.submit(self._executor.run, code, example.input, self._timeout)
        try:
            return wait_for(future, self._timeout, cancel_token)
        except FuturesTimeoutError:
            future.cancel()
            logger.warning(
                "Example %s still running after %ss", example.example_id, self._timeout
            )
            return ExecutionTimeout(self._timeout)
        except (BuildFailure, ExecutionTimeout) as e:
            return e
        except RunCancelled:
            raise
        except Exception as e:
            raise ExecutorFault(
                f"Executor failed on example {example.example_id}: "
                f"{type(e).__name__}: {e}"
            ) from e
        finally:
            worker.shutdown(wait=False)

    def _evaluate(
        self, example: Example, outcome: RunOutcome
    ) -> tuple[TestResult, Failure | None]:
        """Compare one run against its expected output."""
        tags = example.requirement_ids

        if isinstance(outcome, ExecutionTimeout):
            detail = f"Timeout: {outcome}"
            return (
                TestResult(example.example_id, False, "", detail, tags),
                Failure(
                    FailureCategory.TIMEOUT,
                    Severity.MAJOR,
                    example.example_id,
                    detail,
                    tags,
                ),
            )

        # Build failures never reach here: validate() short-circuits them
        result = outcome
        if result.exit_status != 0:
            detail = f"Exited with status {result.exit_status}"
            if result.stderr:
                detail += f": {result.stderr.strip()}"
            return (
                TestResult(example.example_id, False, result.stdout, detail, tags),
                Failure(
                    FailureCategory.CORRECTNESS,
                    Severity.MAJOR,
                    example.example_id,
                    detail,
                    tags,
                ),
            )

        if not self._equivalence(result.stdout, example.expected_output):
            detail = (
                f"Expected {example.expected_output!r}, got {result.stdout!r}"
            )
            return (
                TestResult(example.example_id, False, result.stdout, detail, tags),
                Failure(
                    FailureCategory.CORRECTNESS,
                    Severity.MAJOR,
                    example.example_id,
                    detail,
                    tags,
                ),
            )

        return TestResult(example.example_id, True, result.stdout, "", tags), None

    def _short_circuit(
        self, examples: tuple[Example, ...], error: BuildFailure
    ) -> tuple[tuple[TestResult, ...], Failure]:
        """Fail every example with one shared compilation failure."""
        detail = f"Build failed: {error}"
        if error.output:
            detail += f"\n{error.output.strip()}"
        results = tuple(
            TestResult(e.example_id, False, "", detail, e.requirement_ids)
            for e in examples
        )
        return results, Failure(
            FailureCategory.COMPILATION, Severity.MAJOR, "build", detail
        )

    def _check_completeness(
        self,
        examples: tuple[Example, ...],
        requirements: Sequence[Requirement] | None,
    ) -> list[Failure]:
        """Flag analyses that cannot be validated as written."""
        failures: list[Failure] = []
        if not examples:
            failures.append(
                Failure(
                    FailureCategory.COMPLETENESS,
                    Severity.MAJOR,
                    "analysis",
                    "No input/output examples: the solution cannot be validated",
                )
            )

        if requirements is None:
            return failures

        if not requirements:
            failures.append(
                Failure(
                    FailureCategory.COMPLETENESS,
                    Severity.MAJOR,
                    "analysis",
                    "No requirements declared",
                )
            )
            return failures

        known = {r.requirement_id for r in requirements}
        for example in examples:
            unknown = [rid for rid in example.requirement_ids if rid not in known]
            if unknown:
                failures.append(
                    Failure(
                        FailureCategory.COMPLETENESS,
                        Severity.MAJOR,
                        example.example_id,
                        f"Example references unknown requirement(s): "
                        f"{', '.join(unknown)}",
                    )
                )

        exercised = {rid for e in examples for rid in e.requirement_ids}
        for requirement in requirements:
            if examples and requirement.requirement_id not in exercised:
                failures.append(
                    Failure(
                        FailureCategory.COMPLETENESS,
                        Severity.MINOR,
                        requirement.requirement_id,
                        "No example exercises this requirement",
                        (requirement.requirement_id,),
                    )
                )
        return failures
