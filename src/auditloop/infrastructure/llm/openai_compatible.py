"""
OpenAI-compatible text generator.

Connects to any endpoint speaking the OpenAI chat completions API
(OpenAI itself, Ollama, vLLM, ...).
"""

import logging
from dataclasses import dataclass
from typing import Any, cast

from auditloop.domain.exceptions import CollaboratorUnavailable, ConfigurationError
from auditloop.domain.interfaces import TextGeneratorInterface

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434/v1"

SYSTEM_PROMPT = (
    "You are one collaborator in an iterative software engineering loop. "
    "Answer with a single JSON object inside a ```json block that follows "
    "the OUTPUT contract of the prompt exactly. Do not add other fields."
)


@dataclass
class OpenAICompatibleConfig:
    """Configuration for OpenAICompatibleGenerator.

    This typed config ensures unknown fields are rejected at construction time.
    """

    model: str = "qwen2.5-coder:7b"
    base_url: str = DEFAULT_BASE_URL
    api_key: str = "ollama"  # required by the client, ignored by Ollama
    timeout: float = 120.0
    temperature: float = 0.7

    def __post_init__(self) -> None:
        if not self.model:
            raise ConfigurationError("model must not be empty")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError("temperature must be in [0, 2]")


class OpenAICompatibleGenerator(TextGeneratorInterface):
    """Text-generation collaborator backed by the openai client."""

    config_class = OpenAICompatibleConfig

    def __init__(self, config: OpenAICompatibleConfig | None = None, **kwargs: Any):
        """
        Args:
            config: Typed configuration object (preferred)
            **kwargs: Fields of OpenAICompatibleConfig, used when config is None
        """
        if config is None:
            config = OpenAICompatibleConfig(**kwargs)

        try:
            from openai import OpenAI
        except ImportError as err:
            raise ImportError("openai library required: pip install openai") from err

        self._config = config
        self._client = OpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=config.timeout,
        )

    @property
    def model(self) -> str:
        return self._config.model

    def complete(self, prompt: str) -> str:
        """Send the rendered prompt and return the raw reply text."""
        from openai import APIConnectionError, APIError, APITimeoutError

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        try:
            response = self._client.chat.completions.create(
                model=self._config.model,
                messages=cast(Any, messages),
                temperature=self._config.temperature,
            )
        except (APITimeoutError, APIConnectionError) as e:
            raise CollaboratorUnavailable(
                f"{self._config.base_url} unreachable: {e}"
            ) from e
        except APIError as e:
            raise CollaboratorUnavailable(f"{self._config.model} failed: {e}") from e

        content = response.choices[0].message.content or ""
        logger.debug("Completion from %s (%d chars)", self._config.model, len(content))
        return content
