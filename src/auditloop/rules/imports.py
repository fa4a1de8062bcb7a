"""
Dependency-direction rule.

Pure AST-based rule: files under a path prefix may not import a set of
modules. Does NOT execute code.
"""

import ast

from auditloop.domain.interfaces import ComplianceRuleInterface
from auditloop.domain.models import (
    CodeArtifact,
    Failure,
    FailureCategory,
    Severity,
)


class ForbiddenImportRule(ComplianceRuleInterface):
    """
    Forbids imports of given modules from files under a path prefix.

    Expresses layering constraints such as "domain/ must not import
    infrastructure". Files that do not parse are skipped: syntax errors
    surface through the build, not through architecture checks.
    """

    category = FailureCategory.ARCHITECTURE

    def __init__(
        self,
        source_prefix: str,
        forbidden: tuple[str, ...],
        severity: Severity = Severity.MAJOR,
    ):
        """
        Args:
            source_prefix: Path prefix of the files the rule applies to
            forbidden: Module names (and their submodules) that may not be imported
            severity: Severity of each violation
        """
        self.source_prefix = source_prefix
        self.forbidden = forbidden
        self.severity = severity

    def check(self, code: CodeArtifact) -> tuple[Failure, ...]:
        failures: list[Failure] = []
        for code_file in code.files:
            if not code_file.path.endswith(".py"):
                continue
            if not code_file.path.startswith(self.source_prefix):
                continue
            try:
                tree = ast.parse(code_file.content)
            except SyntaxError:
                continue

            for module, lineno in self._collect_imports(tree):
                if self._is_forbidden(module):
                    failures.append(
                        Failure(
                            category=FailureCategory.ARCHITECTURE,
                            severity=self.severity,
                            location=f"{code_file.path}:{lineno}",
                            description=f"'{module}' may not be imported from "
                            f"'{self.source_prefix}'",
                        )
                    )
        return tuple(failures)

    def _collect_imports(self, tree: ast.AST) -> list[tuple[str, int]]:
        """Absolute module names imported anywhere in the tree."""
        imports: list[tuple[str, int]] = []
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    imports.append((alias.name, node.lineno))
            elif isinstance(node, ast.ImportFrom):
                # Relative imports stay inside the package
                if node.level == 0 and node.module:
                    imports.append((node.module, node.lineno))
        return imports

    def _is_forbidden(self, module: str) -> bool:
        return any(
            module == name or module.startswith(f"{name}.") for name in self.forbidden
        )
