"""
Domain models for the self-auditing code generation loop.

These are pure data structures for the phase artifacts, the validation
report, the audit verdict and the iteration history entries.
All models are immutable (frozen dataclasses) so a committed iteration can
never be edited after the fact.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum

from auditloop.domain.exceptions import ConfigurationError

# =============================================================================
# ENUMERATIONS
# =============================================================================


class Phase(Enum):
    """Stage of a single iteration."""

    ANALYZE = "analyze"
    HYPOTHESIZE = "hypothesize"
    CODE = "code"
    VALIDATE = "validate"


class LoopState(Enum):
    """Loop Controller state machine."""

    ANALYZING = "analyzing"
    HYPOTHESIZING = "hypothesizing"
    CODING = "coding"
    VALIDATING = "validating"
    AUDITING = "auditing"
    REFINING = "refining"
    FINALIZED = "finalized"  # terminal
    ABORTED = "aborted"  # terminal


class Decision(Enum):
    """Termination decision taken by the self-audit."""

    FINALIZE = "finalize"
    FINALIZE_WITH_WARNINGS = "finalize_with_warnings"
    REFINE = "refine"
    ABORT = "abort"

    @property
    def is_terminal(self) -> bool:
        return self is not Decision.REFINE


class FailureCategory(Enum):
    """What kind of defect a Failure describes."""

    CORRECTNESS = "correctness"
    COMPILATION = "compilation"
    TIMEOUT = "timeout"
    ARCHITECTURE = "architecture"
    COMPLETENESS = "completeness"
    SECURITY = "security"
    DISPATCH = "dispatch"


class Severity(Enum):
    """Failure severity, ordered from most to least severe."""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Lower rank means more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.MAJOR: 1,
    Severity.MINOR: 2,
    Severity.INFO: 3,
}


class OutcomeStatus(Enum):
    """Overall result of a run."""

    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"


# =============================================================================
# REQUEST AND ANALYSIS
# =============================================================================


@dataclass(frozen=True)
class Request:
    """The user's problem statement plus free-form constraints."""

    problem: str
    constraints: tuple[str, ...] = ()
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(frozen=True)
class Requirement:
    requirement_id: str
    description: str


@dataclass(frozen=True)
class Example:
    """Input/expected-output pair; the ground truth used for scoring."""

    example_id: str
    input: str
    expected_output: str
    requirement_ids: tuple[str, ...] = ()  # Requirements this example exercises


@dataclass(frozen=True)
class AnalysisArtifact:
    """Output of the ANALYZE phase."""

    requirements: tuple[Requirement, ...]
    constraints: tuple[str, ...] = ()
    examples: tuple[Example, ...] = ()
    risks: tuple[str, ...] = ()
    open_questions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        ids = [r.requirement_id for r in self.requirements]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate requirement ids: {', '.join(duplicates)}")
        example_ids = [e.example_id for e in self.examples]
        duplicates = sorted({i for i in example_ids if example_ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate example ids: {', '.join(duplicates)}")

    @property
    def requirement_ids(self) -> tuple[str, ...]:
        return tuple(r.requirement_id for r in self.requirements)


# =============================================================================
# HYPOTHESIS AND CODE
# =============================================================================


@dataclass(frozen=True)
class AgentTask:
    """Sub-goal assigned to a named collaborator (e.g. 'architect')."""

    collaborator: str
    sub_goal: str


@dataclass(frozen=True)
class HypothesisArtifact:
    """Output of the HYPOTHESIZE phase. Superseded, never mutated."""

    approach: str
    rationale: str = ""
    tasks: tuple[AgentTask, ...] = ()
    expected_behavior: str = ""
    edge_cases: tuple[str, ...] = ()


@dataclass(frozen=True)
class CodeFile:
    path: str
    content: str


@dataclass(frozen=True)
class CodeArtifact:
    """Output of the CODE phase. Each iteration produces a new one."""

    files: tuple[CodeFile, ...]
    dependencies: tuple[str, ...] = ()
    notes: str = ""
    artifact_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def get_file(self, path: str) -> CodeFile | None:
        for code_file in self.files:
            if code_file.path == path:
                return code_file
        return None


# =============================================================================
# VALIDATION
# =============================================================================


@dataclass(frozen=True)
class Failure:
    """A single defect recorded against an iteration."""

    category: FailureCategory
    severity: Severity
    location: str  # Example id, file path, phase name, ...
    description: str
    requirement_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Finding:
    """Defect reported by the reviewing collaborator during VALIDATE."""

    category: FailureCategory
    severity: Severity
    location: str
    description: str

    def to_failure(self) -> Failure:
        return Failure(
            category=self.category,
            severity=self.severity,
            location=self.location,
            description=self.description,
        )


@dataclass(frozen=True)
class ReviewArtifact:
    """Output of the VALIDATE phase dispatch (quality audit of the code)."""

    findings: tuple[Finding, ...] = ()
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExecutionResult:
    """What the build/execute collaborator reports for one run."""

    stdout: str
    exit_status: int = 0
    stderr: str = ""


@dataclass(frozen=True)
class TestResult:
    """Outcome of running the candidate against one example."""

    __test__ = False  # not a pytest class

    example_id: str
    passed: bool
    actual_output: str = ""
    detail: str = ""  # Failure detail (exit status, timeout, build error)
    requirement_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationReport:
    """
    Immutable result of validating one CodeArtifact.

    The score is derived from the report's own TestResults; there is no
    setter and no way to revise it after construction.
    """

    results: tuple[TestResult, ...]
    failures: tuple[Failure, ...] = ()
    suggestions: tuple[str, ...] = ()
    rules_checked: int = 0  # Number of architecture rules evaluated

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def score(self) -> float:
        if not self.results:
            return 0.0
        return self.passed_count / self.total_count

    @property
    def passed(self) -> bool:
        if not self.results or self.failures:
            return False
        return self.passed_count == self.total_count

    @property
    def failed_results(self) -> tuple[TestResult, ...]:
        return tuple(r for r in self.results if not r.passed)

    def failures_in(self, *categories: FailureCategory) -> tuple[Failure, ...]:
        return tuple(f for f in self.failures if f.category in categories)

    def failures_at_least(self, severity: Severity) -> tuple[Failure, ...]:
        return tuple(f for f in self.failures if f.severity.rank <= severity.rank)

    @property
    def has_security_finding(self) -> bool:
        return bool(self.failures_in(FailureCategory.SECURITY))


# =============================================================================
# AUDIT
# =============================================================================


@dataclass(frozen=True)
class AuditScore:
    """Composite self-audit score. All components are in [0.0, 1.0]."""

    test_score: float
    requirements_score: float
    architecture_score: float
    security_score: float
    overall: float


@dataclass(frozen=True)
class RefinementGuidance:
    """What the next iteration should concentrate on."""

    priority: Severity
    focus_areas: tuple[str, ...]
    suggested_actions: tuple[str, ...]
    target_collaborators: tuple[str, ...]
    estimated_remaining_iterations: int


@dataclass(frozen=True)
class TerminationDecision:
    decision: Decision
    confidence: float
    reason: str
    guidance: RefinementGuidance | None = None
    stuck: bool = False  # No strict improvement over two REFINE decisions
    analysis_defective: bool = False  # REFINE should restart at ANALYZE


@dataclass(frozen=True)
class IterationRecord:
    """One committed pass through all four phases plus the audit."""

    iteration_index: int  # 1-based, gap-free
    analysis: AnalysisArtifact
    hypothesis: HypothesisArtifact
    code: CodeArtifact
    report: ValidationReport
    score: AuditScore
    decision: TerminationDecision


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class ScoringWeights:
    """Relative weights of the four score components."""

    tests: float = 0.4
    requirements: float = 0.3
    architecture: float = 0.2
    security: float = 0.1

    def __post_init__(self) -> None:
        values = (self.tests, self.requirements, self.architecture, self.security)
        if any(v < 0 for v in values):
            raise ConfigurationError("Scoring weights must be non-negative")
        if sum(values) <= 0:
            raise ConfigurationError("Scoring weights must not all be zero")

    @property
    def total(self) -> float:
        return self.tests + self.requirements + self.architecture + self.security


@dataclass(frozen=True)
class LoopConfig:
    """Loop Controller configuration.

    Unknown fields are rejected at construction time, invalid values raise
    ConfigurationError.
    """

    max_iterations: int = 5
    confidence_threshold: float = 0.85
    requirements_coverage_min: float = 0.9
    early_termination: bool = True
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    example_timeout: float = 60.0  # seconds, per example
    call_timeout: float = 120.0  # seconds, per collaborator call
    max_workers: int = 4  # concurrent example executions
    reanalyze_on_defect: bool = True
    escalate_on_stuck: bool = False

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ConfigurationError("max_iterations must be a positive integer")
        if not 0.0 < self.confidence_threshold <= 1.0:
            raise ConfigurationError("confidence_threshold must be in (0, 1]")
        if not 0.0 <= self.requirements_coverage_min <= 1.0:
            raise ConfigurationError("requirements_coverage_min must be in [0, 1]")
        if self.example_timeout <= 0 or self.call_timeout <= 0:
            raise ConfigurationError("timeouts must be positive")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")


# =============================================================================
# DISPATCH CONTEXT AND OUTCOME
# =============================================================================


@dataclass(frozen=True)
class ContextPackage:
    """Everything the dispatcher hands to a phase prompt."""

    request: Request
    analysis: AnalysisArtifact | None = None
    history: tuple[IterationRecord, ...] = ()
    specific_focus: str | None = None  # Set during refinement
    hypothesis: HypothesisArtifact | None = None
    code: CodeArtifact | None = None


@dataclass(frozen=True)
class FinalOutcome:
    """Result returned to the host application. Always carries the history."""

    status: OutcomeStatus
    iteration_log: tuple[IterationRecord, ...]
    reason: str
    solution: CodeArtifact | None = None
    evidence: ValidationReport | None = None
    warnings: tuple[Failure, ...] = ()
    failures: tuple[Failure, ...] = ()  # Run-level failures (e.g. dispatch)

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    @property
    def partial_log(self) -> tuple[IterationRecord, ...]:
        return self.iteration_log
