"""Rich rendering of a run's FinalOutcome."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from auditloop.domain.models import (
    Decision,
    FinalOutcome,
    IterationRecord,
    OutcomeStatus,
)

STATUS_STYLES = {
    OutcomeStatus.SUCCEEDED: "green",
    OutcomeStatus.MAX_ITERATIONS_REACHED: "yellow",
    OutcomeStatus.ABORTED: "red",
}

DECISION_STYLES = {
    Decision.FINALIZE: "green",
    Decision.FINALIZE_WITH_WARNINGS: "yellow",
    Decision.REFINE: "cyan",
    Decision.ABORT: "red",
}


def iteration_table(records: tuple[IterationRecord, ...]) -> Table:
    """One row per committed iteration."""
    table = Table(title="Iterations")
    table.add_column("#", justify="right")
    table.add_column("Tests", justify="right")
    table.add_column("Reqs", justify="right")
    table.add_column("Arch", justify="right")
    table.add_column("Sec", justify="right")
    table.add_column("Overall", justify="right", style="bold")
    table.add_column("Failures", justify="right")
    table.add_column("Decision")

    for record in records:
        score = record.score
        decision = record.decision.decision
        table.add_row(
            str(record.iteration_index),
            f"{record.report.passed_count}/{record.report.total_count}",
            f"{score.requirements_score:.2f}",
            f"{score.architecture_score:.2f}",
            f"{score.security_score:.2f}",
            f"{score.overall:.2f}",
            str(len(record.report.failures)),
            Text(decision.value, style=DECISION_STYLES[decision]),
        )
    return table


def render_outcome(outcome: FinalOutcome, console: Console | None = None) -> None:
    """Print the iteration log and the verdict."""
    console = console or Console()
    if outcome.iteration_log:
        console.print(iteration_table(outcome.iteration_log))
    else:
        console.print(Text("No iteration completed", style="dim"))

    style = STATUS_STYLES[outcome.status]
    content = Text(outcome.reason, style=f"bold {style}")
    for failure in outcome.failures:
        content.append(
            f"\n[{failure.severity.value}] {failure.location}: {failure.description}",
            style="red",
        )
    if outcome.warnings:
        content.append(f"\n{len(outcome.warnings)} warning(s) recorded", style="yellow")
    console.print(
        Panel(content, title=outcome.status.value, border_style=style, expand=False)
    )
