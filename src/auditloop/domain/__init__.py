"""
Domain layer for the self-auditing loop.

Contains core records, ports and rules with no external dependencies.
"""

from auditloop.domain.exceptions import (
    BuildFailure,
    CollaboratorUnavailable,
    ConfigurationError,
    DispatchError,
    DispatchErrorKind,
    ExecutionTimeout,
    ExecutorFault,
    HistoryOrderError,
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
    AgentTask,
    AnalysisArtifact,
    AuditScore,
    CodeArtifact,
    CodeFile,
    ContextPackage,
    Decision,
    Example,
    ExecutionResult,
    Failure,
    FailureCategory,
    FinalOutcome,
    Finding,
    HypothesisArtifact,
    IterationRecord,
    LoopConfig,
    LoopState,
    OutcomeStatus,
    Phase,
    RefinementGuidance,
    Request,
    Requirement,
    ReviewArtifact,
    ScoringWeights,
    Severity,
    TerminationDecision,
    TestResult,
    ValidationReport,
)
from auditloop.domain.prompts import PhasePromptTemplate, default_templates

__all__ = [
    # Models
    "AgentTask",
    "AnalysisArtifact",
    "AuditScore",
    "CodeArtifact",
    "CodeFile",
    "ContextPackage",
    "Decision",
    "Example",
    "ExecutionResult",
    "Failure",
    "FailureCategory",
    "FinalOutcome",
    "Finding",
    "HypothesisArtifact",
    "IterationRecord",
    "LoopConfig",
    "LoopState",
    "OutcomeStatus",
    "Phase",
    "RefinementGuidance",
    "Request",
    "Requirement",
    "ReviewArtifact",
    "ScoringWeights",
    "Severity",
    "TerminationDecision",
    "TestResult",
    "ValidationReport",
    # History
    "IterationHistory",
    # Prompts
    "PhasePromptTemplate",
    "default_templates",
    # Interfaces
    "BuildExecutorInterface",
    "ComplianceRuleInterface",
    "IterationHistoryInterface",
    "TextGeneratorInterface",
    # Exceptions
    "BuildFailure",
    "CollaboratorUnavailable",
    "ConfigurationError",
    "DispatchError",
    "DispatchErrorKind",
    "ExecutionTimeout",
    "ExecutorFault",
    "HistoryOrderError",
    "RunCancelled",
    "Unrecoverable",
]
