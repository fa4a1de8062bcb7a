"""
Build/execute adapters used by the Validation Runner.
"""

from auditloop.infrastructure.execution.mock import MockBuildExecutor
from auditloop.infrastructure.execution.process import (
    SubprocessBuildExecutor,
    SubprocessExecutorConfig,
)

__all__ = [
    "MockBuildExecutor",
    "SubprocessBuildExecutor",
    "SubprocessExecutorConfig",
]
