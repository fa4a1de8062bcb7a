"""
Compliance rules for the Validation Runner.

Rules are structural checks evaluated independently of the example tests.
They only add Failures; they never change a TestResult.

- imports: layering / dependency-direction constraints (ARCHITECTURE)
- security: dangerous calls (SECURITY)
"""

from auditloop.rules.imports import ForbiddenImportRule
from auditloop.rules.security import DangerousCallRule

__all__ = [
    "DangerousCallRule",
    "ForbiddenImportRule",
]
