"""Tests for rich outcome rendering."""

import io

from rich.console import Console

from auditloop.domain.models import (
    Failure,
    FailureCategory,
    FinalOutcome,
    IterationRecord,
    OutcomeStatus,
    Severity,
)
from auditloop.visualization import iteration_table, render_outcome


def _render(outcome: FinalOutcome) -> str:
    buffer = io.StringIO()
    render_outcome(outcome, Console(file=buffer, width=120, color_system=None))
    return buffer.getvalue()


class TestRenderOutcome:
    def test_iteration_rows_and_verdict(self, sample_record: IterationRecord) -> None:
        outcome = FinalOutcome(
            status=OutcomeStatus.MAX_ITERATIONS_REACHED,
            iteration_log=(sample_record,),
            reason="Iteration budget of 1 exhausted",
            warnings=(
                Failure(FailureCategory.CORRECTNESS, Severity.MAJOR, "e2", "wrong"),
            ),
        )

        text = _render(outcome)

        assert "Iterations" in text
        assert "1/2" in text
        assert "0.65" in text
        assert "refine" in text
        assert "max_iterations_reached" in text
        assert "Iteration budget of 1 exhausted" in text
        assert "1 warning(s) recorded" in text

    def test_aborted_without_iterations(self) -> None:
        outcome = FinalOutcome(
            status=OutcomeStatus.ABORTED,
            iteration_log=(),
            reason="Phase analyze failed twice in iteration 1",
            failures=(
                Failure(
                    FailureCategory.DISPATCH,
                    Severity.CRITICAL,
                    "analyze",
                    "collaborator_unavailable",
                ),
            ),
        )

        text = _render(outcome)

        assert "No iteration completed" in text
        assert "[critical] analyze: collaborator_unavailable" in text


class TestIterationTable:
    def test_one_row_per_record(self, sample_record: IterationRecord) -> None:
        table = iteration_table((sample_record,))

        assert table.row_count == 1
        assert len(table.columns) == 8
