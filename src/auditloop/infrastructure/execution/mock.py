"""
Function-backed build/execute collaborator for testing without a toolchain.
"""

import threading
from collections.abc import Callable

from auditloop.domain.interfaces import BuildExecutorInterface
from auditloop.domain.models import CodeArtifact, ExecutionResult

Behaviour = Callable[[CodeArtifact, str], ExecutionResult | str]


class MockBuildExecutor(BuildExecutorInterface):
    """
    Delegates each run to a plain function.

    The function receives the candidate and the example input and returns
    either an ExecutionResult or just the stdout text. It may raise
    BuildFailure or ExecutionTimeout to simulate those outcomes. The
    timeout is not enforced here; ValidationRunner applies its own deadline.
    """

    def __init__(self, behaviour: Behaviour):
        self._behaviour = behaviour
        self._lock = threading.Lock()
        self._inputs: list[str] = []

    def run(self, code: CodeArtifact, input: str, timeout: float) -> ExecutionResult:
        with self._lock:
            self._inputs.append(input)
        result = self._behaviour(code, input)
        if isinstance(result, str):
            return ExecutionResult(stdout=result)
        return result

    @property
    def inputs(self) -> tuple[str, ...]:
        """Inputs seen so far (completion order, not submission order)."""
        with self._lock:
            return tuple(self._inputs)
