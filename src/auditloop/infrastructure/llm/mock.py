"""
Mock text generator for testing without an LLM.

Returns predefined replies in sequence.
"""

from auditloop.domain.interfaces import TextGeneratorInterface


class MockTextGenerator(TextGeneratorInterface):
    """Returns predefined replies for testing.

    An Exception in the reply list is raised instead of returned, which
    lets tests script collaborator outages.
    """

    def __init__(self, responses: list[str | Exception]):
        """
        Args:
            responses: Replies (or exceptions to raise) in call order
        """
        self._responses = responses
        self._call_count = 0
        self._prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        """Return the next predefined reply."""
        if self._call_count >= len(self._responses):
            raise RuntimeError("MockTextGenerator exhausted responses")

        response = self._responses[self._call_count]
        self._call_count += 1
        self._prompts.append(prompt)

        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        """Number of times complete() has been called."""
        return self._call_count

    @property
    def prompts(self) -> tuple[str, ...]:
        """Prompts received so far, in call order."""
        return tuple(self._prompts)

    def reset(self) -> None:
        """Reset the call counter to reuse responses."""
        self._call_count = 0
        self._prompts.clear()
