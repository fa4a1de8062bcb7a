"""
Dangerous-call rule.

Pure AST-based security rule flagging calls that execute arbitrary code or
shell commands. Findings are SECURITY failures, which cap the audit score.
"""

import ast

from auditloop.domain.interfaces import ComplianceRuleInterface
from auditloop.domain.models import (
    CodeArtifact,
    Failure,
    FailureCategory,
    Severity,
)


class DangerousCallRule(ComplianceRuleInterface):
    """
    Flags eval/exec, os.system/os.popen, pickle loading and shell=True.

    Static only: a dynamically built call (getattr tricks, aliases) is not
    detected.
    """

    category = FailureCategory.SECURITY

    DANGEROUS_NAMES = frozenset({"eval", "exec"})
    DANGEROUS_ATTRIBUTES = frozenset(
        {
            ("os", "system"),
            ("os", "popen"),
            ("pickle", "loads"),
            ("pickle", "load"),
            ("marshal", "loads"),
        }
    )

    def __init__(self, severity: Severity = Severity.CRITICAL):
        self.severity = severity

    def check(self, code: CodeArtifact) -> tuple[Failure, ...]:
        failures: list[Failure] = []
        for code_file in code.files:
            if not code_file.path.endswith(".py"):
                continue
            try:
                tree = ast.parse(code_file.content)
            except SyntaxError:
                continue

            for node in ast.walk(tree):
                if not isinstance(node, ast.Call):
                    continue
                reason = self._describe(node)
                if reason:
                    failures.append(
                        Failure(
                            category=FailureCategory.SECURITY,
                            severity=self.severity,
                            location=f"{code_file.path}:{node.lineno}",
                            description=reason,
                        )
                    )
        return tuple(failures)

    def _describe(self, call: ast.Call) -> str:
        """Return why the call is dangerous, or an empty string."""
        func = call.func
        if isinstance(func, ast.Name) and func.id in self.DANGEROUS_NAMES:
            return f"Call to {func.id}() executes arbitrary code"

        if isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name):
            pair = (func.value.id, func.attr)
            if pair in self.DANGEROUS_ATTRIBUTES:
                return f"Call to {pair[0]}.{pair[1]}() is unsafe"
            if func.value.id == "subprocess" and self._uses_shell(call):
                return f"subprocess.{func.attr}() with shell=True"

        return ""

    def _uses_shell(self, call: ast.Call) -> bool:
        for keyword in call.keywords:
            if (
                keyword.arg == "shell"
                and isinstance(keyword.value, ast.Constant)
                and keyword.value.value is True
            ):
                return True
        return False
