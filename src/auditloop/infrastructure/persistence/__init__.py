"""
Persistence adapters for the iteration audit trail.
"""

from auditloop.infrastructure.persistence.filesystem import (
    FilesystemIterationHistory,
)
from auditloop.infrastructure.persistence.serialization import (
    record_from_dict,
    record_to_dict,
)

__all__ = [
    "FilesystemIterationHistory",
    "record_from_dict",
    "record_to_dict",
]
