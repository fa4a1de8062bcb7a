"""
Infrastructure layer for the self-auditing loop.

Contains adapters for external concerns (LLMs, build execution,
persistence, registry, configuration).
"""

from auditloop.infrastructure.config import (
    configure_logging,
    load_collaborators,
    load_loop_config,
)
from auditloop.infrastructure.execution import (
    MockBuildExecutor,
    SubprocessBuildExecutor,
    SubprocessExecutorConfig,
)
from auditloop.infrastructure.llm import (
    MockTextGenerator,
    OpenAICompatibleConfig,
    OpenAICompatibleGenerator,
)
from auditloop.infrastructure.logging_setup import LoggingConfig, setup_logging
from auditloop.infrastructure.persistence import FilesystemIterationHistory
from auditloop.infrastructure.registry import (
    EXECUTORS,
    GENERATORS,
    CollaboratorRegistry,
)

__all__ = [
    # LLM
    "MockTextGenerator",
    "OpenAICompatibleConfig",
    "OpenAICompatibleGenerator",
    # Execution
    "MockBuildExecutor",
    "SubprocessBuildExecutor",
    "SubprocessExecutorConfig",
    # Persistence
    "FilesystemIterationHistory",
    # Registry
    "CollaboratorRegistry",
    "EXECUTORS",
    "GENERATORS",
    # Configuration
    "LoggingConfig",
    "configure_logging",
    "load_collaborators",
    "load_loop_config",
    "setup_logging",
]
