"""
Domain interfaces (Ports) for the self-auditing loop.

The language model and the build/test runner are capabilities injected at
these seams, so the Loop Controller never depends on a concrete
collaborator and tests can drive it with stubs.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from auditloop.domain.models import FailureCategory

if TYPE_CHECKING:
    from auditloop.domain.models import (
        CodeArtifact,
        ExecutionResult,
        Failure,
        IterationRecord,
    )


class TextGeneratorInterface(ABC):
    """
    Port for the text-generation collaborator.

    Implementations connect to an LLM. The collaborator is stochastic;
    nothing here promises determinism, which is why correctness is judged
    by the Self-Audit Scorer and not by the generator.
    """

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """
        Produce a completion for the rendered phase prompt.

        Args:
            prompt: Fully rendered prompt text

        Returns:
            Raw completion text (expected to contain a JSON payload)

        Raises:
            CollaboratorUnavailable: If the collaborator cannot answer
        """
        pass


class BuildExecutorInterface(ABC):
    """
    Port for the build/execute collaborator.

    Implementations must be safe to call concurrently for the same
    CodeArtifact: examples are independent and may run in parallel.
    """

    @abstractmethod
    def run(
        self, code: "CodeArtifact", input: str, timeout: float
    ) -> "ExecutionResult":
        """
        Build the candidate and run it on one input.

        Args:
            code: The candidate solution
            input: Example input (fed to the program)
            timeout: Seconds allowed for this run

        Returns:
            ExecutionResult with stdout and exit status

        Raises:
            BuildFailure: If the candidate does not build
            ExecutionTimeout: If the run exceeds timeout
        """
        pass


class ComplianceRuleInterface(ABC):
    """
    Port for structural checks evaluated independently of examples.

    Rules never influence individual TestResults; they only add Failures.
    ``category`` is the kind of Failure the rule reports; only ARCHITECTURE
    rules count towards the architecture score denominator.
    """

    category: FailureCategory = FailureCategory.ARCHITECTURE

    @abstractmethod
    def check(self, code: "CodeArtifact") -> tuple["Failure", ...]:
        """
        Evaluate the rule against a candidate.

        Returns:
            Failures found (empty tuple if the rule holds)
        """
        pass


class IterationHistoryInterface(ABC):
    """
    Port for the append-only iteration audit trail.

    Implementations must reject any record whose index is not exactly
    one past the last stored record.
    """

    @abstractmethod
    def append(self, record: "IterationRecord") -> None:
        """
        Append a committed iteration.

        Raises:
            HistoryOrderError: If the index would leave a gap or duplicate
        """
        pass

    @abstractmethod
    def records(self) -> tuple["IterationRecord", ...]:
        """Return all records, oldest first."""
        pass
