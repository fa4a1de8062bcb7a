"""
AgentDispatcher: phase-to-collaborator routing.

Renders the phase prompt, calls the text-generation collaborator under a
timeout and strictly parses the reply into the phase's artifact type.
"""

import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

from pydantic import ValidationError

from auditloop.application.cancellation import CancellationToken, wait_for
from auditloop.domain.exceptions import (
    CollaboratorUnavailable,
    DispatchError,
    DispatchErrorKind,
)
from auditloop.domain.interfaces import TextGeneratorInterface
from auditloop.domain.models import ContextPackage, Phase
from auditloop.domain.prompts import PhasePromptTemplate, default_templates
from auditloop.schemas import PhaseArtifact, parse_phase_payload

logger = logging.getLogger(__name__)


class AgentDispatcher:
    """
    Routes a phase and its context to the text-generation collaborator.

    Every invocation is fresh: nothing is cached, and a stochastic
    collaborator may answer differently each time. Correctness is judged
    downstream by the Self-Audit Scorer.
    """

    def __init__(
        self,
        generator: TextGeneratorInterface,
        templates: dict[Phase, PhasePromptTemplate] | None = None,
        call_timeout: float = 120.0,
    ):
        """
        Args:
            generator: The text-generation collaborator
            templates: Per-phase prompt templates (defaults for missing phases)
            call_timeout: Seconds allowed per collaborator call
        """
        merged = default_templates()
        if templates:
            merged.update(templates)
        self._generator = generator
        self._templates = merged
        self._call_timeout = call_timeout

    @property
    def generator(self) -> TextGeneratorInterface:
        """Access the generator (read-only)."""
        return self._generator

    @property
    def call_timeout(self) -> float:
        return self._call_timeout

    def with_timeout(self, call_timeout: float) -> "AgentDispatcher":
        """A dispatcher sharing generator and templates, with another timeout."""
        return AgentDispatcher(
            self._generator, templates=self._templates, call_timeout=call_timeout
        )

    def invoke(
        self,
        phase: Phase,
        context: ContextPackage,
        cancel_token: CancellationToken | None = None,
    ) -> PhaseArtifact:
        """
        Dispatch one phase.

        Args:
            phase: The phase to run
            context: Request, current analysis, prior history and focus
            cancel_token: Stops waiting on the collaborator when cancelled

        Returns:
            The parsed artifact for the phase

        Raises:
            DispatchError: MALFORMED_RESPONSE or COLLABORATOR_UNAVAILABLE
            RunCancelled: If the token is cancelled during the call
        """
        prompt = self._templates[phase].render(context)
        logger.debug("[%s] Prompt (%d chars)", phase.value, len(prompt))

        raw = self._call(phase, prompt, cancel_token)
        payload_text = extract_json(raw)
        if not payload_text:
            raise DispatchError(
                DispatchErrorKind.MALFORMED_RESPONSE,
                phase,
                "No JSON object found in response",
            )

        try:
            data = json.loads(payload_text)
        except json.JSONDecodeError as e:
            raise DispatchError(
                DispatchErrorKind.MALFORMED_RESPONSE, phase, f"Invalid JSON: {e}"
            ) from e

        try:
            artifact = parse_phase_payload(phase, data)
        except ValidationError as e:
            raise DispatchError(
                DispatchErrorKind.MALFORMED_RESPONSE,
                phase,
                f"Schema violation: {e.error_count()} error(s): {e}",
            ) from e

        logger.debug("[%s] Parsed %s", phase.value, type(artifact).__name__)
        return artifact

    def _call(
        self, phase: Phase, prompt: str, cancel_token: CancellationToken | None
    ) -> str:
        """Call the collaborator, enforcing the per-call timeout."""
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._generator.complete, prompt)
        try:
            return wait_for(future, self._call_timeout, cancel_token)
        except FuturesTimeoutError as e:
            future.cancel()
            raise DispatchError(
                DispatchErrorKind.COLLABORATOR_UNAVAILABLE,
                phase,
                f"No response within {self._call_timeout}s",
            ) from e
        except CollaboratorUnavailable as e:
            raise DispatchError(
                DispatchErrorKind.COLLABORATOR_UNAVAILABLE, phase, str(e)
            ) from e
        finally:
            executor.shutdown(wait=False)


def extract_json(content: str) -> str:
    """Extract the JSON payload from a completion."""
    if not content or content.isspace():
        return ""

    # Try json block
    match = re.search(r"```json\s*\n(.*?)\n\s*```", content, re.DOTALL)
    if match:
        return match.group(1)

    # Try generic block
    match = re.search(r"```\s*\n(.*?)\n\s*```", content, re.DOTALL)
    if match:
        return match.group(1)

    # Try outermost braces
    start = content.find("{")
    end = content.rfind("}")
    if start != -1 and end > start:
        return content[start : end + 1]

    # Nothing that looks like JSON - caller reports a malformed response
    return ""
