"""
Domain exceptions for the self-auditing loop.

Only Unrecoverable is fatal to a run; everything else is absorbed into the
current iteration's Failure list by the application layer.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from auditloop.domain.models import Phase


class ConfigurationError(Exception):
    """Raised when configuration values or files are invalid or missing."""

    pass


class DispatchErrorKind(Enum):
    MALFORMED_RESPONSE = "malformed_response"
    COLLABORATOR_UNAVAILABLE = "collaborator_unavailable"


class DispatchError(Exception):
    """
    Raised when a phase dispatch does not yield a usable artifact.

    Retryable once by the Loop Controller.
    """

    def __init__(self, kind: DispatchErrorKind, phase: "Phase", message: str):
        """
        Args:
            kind: Whether the response was malformed or the collaborator failed
            phase: The phase being dispatched
            message: Human-readable detail
        """
        super().__init__(f"[{phase.value}] {kind.value}: {message}")
        self.kind = kind
        self.phase = phase
        self.message = message


class CollaboratorUnavailable(Exception):
    """Raised by a text-generation collaborator that cannot answer."""

    pass


class BuildFailure(Exception):
    """Raised by a build/execute collaborator when the code does not build."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class ExecutionTimeout(Exception):
    """Raised when running one example exceeds its time budget."""

    def __init__(self, timeout: float):
        super().__init__(f"Execution exceeded {timeout}s")
        self.timeout = timeout


class ExecutorFault(Exception):
    """
    Raised when the build/execute collaborator fails for a reason other
    than a build failure or a timeout.

    Retryable once by the Loop Controller, like a DispatchError.
    """

    pass


class RunCancelled(Exception):
    """Raised while waiting on a collaborator when the run is cancelled."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class Unrecoverable(Exception):
    """
    Raised when a collaborator fails twice in a row for the same phase.

    Signals an external fault rather than a quality problem; the run is
    aborted with its partial history.
    """

    def __init__(
        self,
        phase: "Phase",
        iteration_index: int,
        cause: DispatchError | ExecutorFault,
    ):
        super().__init__(
            f"Phase {phase.value} failed twice in iteration {iteration_index}: {cause}"
        )
        self.phase = phase
        self.iteration_index = iteration_index
        self.cause = cause


class HistoryOrderError(Exception):
    """Raised when a record would break the gap-free iteration ordering."""

    pass
