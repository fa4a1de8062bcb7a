"""
LLM adapters for phase dispatch.
"""

from auditloop.infrastructure.llm.mock import MockTextGenerator
from auditloop.infrastructure.llm.openai_compatible import (
    OpenAICompatibleConfig,
    OpenAICompatibleGenerator,
)

__all__ = [
    "MockTextGenerator",
    "OpenAICompatibleConfig",
    "OpenAICompatibleGenerator",
]
