"""
Filesystem implementation of the iteration history.

Durable, append-only audit trail: one JSON file per committed iteration
plus an index that is rewritten atomically after each append.
"""

import json
import logging
from pathlib import Path
from typing import Any

from auditloop.domain.exceptions import HistoryOrderError
from auditloop.domain.interfaces import IterationHistoryInterface
from auditloop.domain.models import IterationRecord
from auditloop.infrastructure.persistence.serialization import (
    record_from_dict,
    record_to_dict,
)

logger = logging.getLogger(__name__)


class FilesystemIterationHistory(IterationHistoryInterface):
    """
    Persistent iteration history rooted at a directory.

    Opening an existing directory resumes its history: the next append must
    continue the stored numbering.
    """

    def __init__(self, base_dir: str | Path):
        self._base_dir = Path(base_dir)
        self._records_dir = self._base_dir / "iterations"
        self._index_path = self._base_dir / "index.json"
        self._records: list[IterationRecord] = []
        self._index: dict[str, Any] = self._load_or_create_index()

    def _load_or_create_index(self) -> dict[str, Any]:
        """Load existing index (and its records) or create a new one."""
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._records_dir.mkdir(parents=True, exist_ok=True)

        if not self._index_path.exists():
            return {"version": "1.0", "iterations": []}

        with open(self._index_path) as f:
            index: dict[str, Any] = json.load(f)
        for entry in index["iterations"]:
            with open(self._base_dir / entry["path"]) as f:
                self._records.append(record_from_dict(json.load(f)))
        logger.debug(
            "Loaded %d iteration(s) from %s", len(self._records), self._base_dir
        )
        return index

    def _update_index_atomic(self) -> None:
        """Atomically update index.json using write-to-temp + rename."""
        temp_path = self._index_path.with_suffix(".tmp")
        with open(temp_path, "w") as f:
            json.dump(self._index, f, indent=2)
        temp_path.replace(self._index_path)

    def append(self, record: IterationRecord) -> None:
        expected = len(self._records) + 1
        if record.iteration_index != expected:
            raise HistoryOrderError(
                f"Expected iteration {expected}, got {record.iteration_index}"
            )

        relative = Path("iterations") / f"{record.iteration_index:04d}.json"
        with open(self._base_dir / relative, "w") as f:
            json.dump(record_to_dict(record), f, indent=2)

        self._index["iterations"].append(
            {
                "iteration_index": record.iteration_index,
                "path": str(relative),
                "decision": record.decision.decision.value,
                "overall": record.score.overall,
            }
        )
        self._update_index_atomic()
        self._records.append(record)

    def records(self) -> tuple[IterationRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    @classmethod
    def load(cls, base_dir: str | Path) -> tuple[IterationRecord, ...]:
        """Read a stored history for auditing without opening it for append."""
        if not (Path(base_dir) / "index.json").exists():
            raise FileNotFoundError(f"No iteration history at {base_dir}")
        return cls(base_dir).records()
