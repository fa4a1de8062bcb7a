"""
auditloop: self-auditing ANALYZE -> HYPOTHESIZE -> CODE -> VALIDATE loop.

Drives a stochastic text-generation collaborator through repeated
iterations, validates each candidate against input/output examples and
compliance rules, and lets a deterministic self-audit decide whether to
finalize, refine or abort.

Example:
    from auditloop import LoopController, LoopConfig, Request
    from auditloop.infrastructure import (
        LoggingConfig,
        OpenAICompatibleGenerator,
        SubprocessBuildExecutor,
        setup_logging,
    )

    setup_logging(LoggingConfig(log_file="runs/loop.log"))
    controller = LoopController.from_collaborators(
        OpenAICompatibleGenerator(model="qwen2.5-coder:7b"),
        SubprocessBuildExecutor(run_command=("python", "main.py")),
        config=LoopConfig(max_iterations=3),
    )
    outcome = controller.run(Request(problem="Reverse each line of stdin"))
"""

# Application layer (orchestration)
from auditloop.application import (
    AgentDispatcher,
    CancellationToken,
    LoopController,
    SelfAuditScorer,
    ValidationRunner,
    exact_match,
    normalized_match,
)

# Domain exceptions
from auditloop.domain.exceptions import (
    ConfigurationError,
    DispatchError,
    HistoryOrderError,
    Unrecoverable,
)

# Domain interfaces (for type hints and custom implementations)
from auditloop.domain.interfaces import (
    BuildExecutorInterface,
    ComplianceRuleInterface,
    IterationHistoryInterface,
    TextGeneratorInterface,
)
from auditloop.domain.models import (
    AnalysisArtifact,
    AuditScore,
    CodeArtifact,
    CodeFile,
    Decision,
    Example,
    Failure,
    FailureCategory,
    FinalOutcome,
    IterationRecord,
    LoopConfig,
    OutcomeStatus,
    Request,
    Requirement,
    ScoringWeights,
    Severity,
    TerminationDecision,
    ValidationReport,
)

# Compliance rules (commonly composed)
from auditloop.rules import DangerousCallRule, ForbiddenImportRule

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Domain models
    "AnalysisArtifact",
    "AuditScore",
    "CodeArtifact",
    "CodeFile",
    "Decision",
    "Example",
    "Failure",
    "FailureCategory",
    "FinalOutcome",
    "IterationRecord",
    "LoopConfig",
    "OutcomeStatus",
    "Request",
    "Requirement",
    "ScoringWeights",
    "Severity",
    "TerminationDecision",
    "ValidationReport",
    # Domain interfaces
    "BuildExecutorInterface",
    "ComplianceRuleInterface",
    "IterationHistoryInterface",
    "TextGeneratorInterface",
    # Domain exceptions
    "ConfigurationError",
    "DispatchError",
    "HistoryOrderError",
    "Unrecoverable",
    # Application layer
    "AgentDispatcher",
    "CancellationToken",
    "LoopController",
    "SelfAuditScorer",
    "ValidationRunner",
    "exact_match",
    "normalized_match",
    # Rules
    "DangerousCallRule",
    "ForbiddenImportRule",
]
