"""
Subprocess build/execute collaborator.

Materialises a CodeArtifact in a private temporary directory, runs an
optional build command and then the run command with the example input on
stdin.
"""

import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from auditloop.domain.exceptions import (
    BuildFailure,
    ConfigurationError,
    ExecutionTimeout,
)
from auditloop.domain.interfaces import BuildExecutorInterface
from auditloop.domain.models import CodeArtifact, ExecutionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubprocessExecutorConfig:
    """Commands are argument lists run without a shell, inside the workdir."""

    run_command: tuple[str, ...]
    build_command: tuple[str, ...] | None = None
    build_timeout: float = 300.0

    def __post_init__(self) -> None:
        if not self.run_command:
            raise ConfigurationError("run_command must not be empty")
        if self.build_command is not None and not self.build_command:
            raise ConfigurationError("build_command must be omitted or non-empty")
        if self.build_timeout <= 0:
            raise ConfigurationError("build_timeout must be positive")


class SubprocessBuildExecutor(BuildExecutorInterface):
    """
    Runs each example in its own temporary directory.

    Every run is isolated, so concurrent runs of the same artifact never
    share files.
    """

    config_class = SubprocessExecutorConfig

    def __init__(self, config: SubprocessExecutorConfig | None = None, **kwargs: Any):
        """
        Args:
            config: Typed configuration object (preferred)
            **kwargs: Fields of SubprocessExecutorConfig, used when config is None
        """
        if config is None:
            kwargs = {
                k: tuple(v) if isinstance(v, list) else v for k, v in kwargs.items()
            }
            config = SubprocessExecutorConfig(**kwargs)
        self._config = config

    def run(self, code: CodeArtifact, input: str, timeout: float) -> ExecutionResult:
        with tempfile.TemporaryDirectory(prefix="auditloop_") as tmp:
            workdir = Path(tmp)
            self._materialise(code, workdir)
            if self._config.build_command is not None:
                self._build(workdir)

            try:
                completed = subprocess.run(
                    list(self._config.run_command),
                    cwd=workdir,
                    input=input,
                    capture_output=True,
                    text=True,
                    timeout=timeout,
                )
            except subprocess.TimeoutExpired as e:
                raise ExecutionTimeout(timeout) from e
            except OSError as e:
                raise BuildFailure(f"Cannot start run command: {e}") from e

        return ExecutionResult(
            stdout=completed.stdout,
            exit_status=completed.returncode,
            stderr=completed.stderr,
        )

    def _materialise(self, code: CodeArtifact, workdir: Path) -> None:
        """Write every file of the artifact under workdir."""
        root = workdir.resolve()
        for code_file in code.files:
            target = (workdir / code_file.path).resolve()
            if not target.is_relative_to(root):
                raise BuildFailure(f"File path escapes the workdir: {code_file.path}")
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(code_file.content)
            except OSError as e:
                # e.g. both "a" and "a/b" in one artifact
                raise BuildFailure(
                    f"Cannot write {code_file.path}: {e.strerror or e}"
                ) from e

    def _build(self, workdir: Path) -> None:
        build_command = list(self._config.build_command or ())
        try:
            completed = subprocess.run(
                build_command,
                cwd=workdir,
                capture_output=True,
                text=True,
                timeout=self._config.build_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise BuildFailure(
                f"Build exceeded {self._config.build_timeout}s"
            ) from e
        except OSError as e:
            raise BuildFailure(f"Cannot start build command: {e}") from e

        if completed.returncode != 0:
            logger.debug("Build failed with status %d", completed.returncode)
            raise BuildFailure(
                f"Build exited with status {completed.returncode}",
                output=completed.stdout + completed.stderr,
            )
