"""
In-memory implementation of the iteration history.

The default audit trail for a run: append-only, gap-free, owned by exactly
one Loop Controller run.
"""

from auditloop.domain.exceptions import HistoryOrderError
from auditloop.domain.interfaces import IterationHistoryInterface
from auditloop.domain.models import IterationRecord


class IterationHistory(IterationHistoryInterface):
    """Ordered, append-only sequence of IterationRecords."""

    def __init__(self) -> None:
        self._records: list[IterationRecord] = []

    def append(self, record: IterationRecord) -> None:
        expected = len(self._records) + 1
        if record.iteration_index != expected:
            raise HistoryOrderError(
                f"Expected iteration {expected}, got {record.iteration_index}"
            )
        self._records.append(record)

    def records(self) -> tuple[IterationRecord, ...]:
        return tuple(self._records)

    def latest(self) -> IterationRecord | None:
        return self._records[-1] if self._records else None

    def __len__(self) -> int:
        return len(self._records)
