"""
FeedbackSummarizer: refinement focus rendering.

Turns the RefinementGuidance of a REFINE decision plus the iteration
history into the ``specific_focus`` text handed to the next dispatch.
"""

from collections.abc import Sequence

from auditloop.domain.models import IterationRecord, RefinementGuidance

# Longest failure description copied into the focus text
MAX_DETAIL_CHARS = 500


class FeedbackSummarizer:
    """Summarizes what went wrong so the next iteration can avoid it."""

    MAX_APPROACHES = 5

    def render_focus(
        self,
        guidance: RefinementGuidance,
        history: Sequence[IterationRecord],
    ) -> str:
        """Generate the refinement focus for the next iteration.

        Args:
            guidance: Guidance attached to the REFINE decision
            history: All committed iterations, oldest first

        Returns:
            Formatted focus text for prompt injection
        """
        lines = [f"## Refinement Focus (priority: {guidance.priority.value})", ""]

        if guidance.focus_areas:
            lines.append("### Focus Areas")
            for area in guidance.focus_areas:
                lines.append(f"- {area}")
            lines.append("")

        if guidance.suggested_actions:
            lines.append("### Suggested Actions")
            for action in guidance.suggested_actions:
                lines.append(f"- {action}")
            lines.append("")

        approaches = self.approaches_tried(history)
        if approaches:
            lines.append("### Approaches Already Tried")
            for approach in approaches[: self.MAX_APPROACHES]:
                lines.append(f"- {approach}")
            lines.append("")

        if history:
            latest = history[-1]
            lines.append("### Latest Result")
            lines.append(
                f"Iteration {latest.iteration_index} scored "
                f"{latest.score.overall:.2f} "
                f"({latest.report.passed_count}/{latest.report.total_count} "
                "examples passed)"
            )
            for result in latest.report.failed_results:
                detail = result.detail or f"got {result.actual_output!r}"
                if len(detail) > MAX_DETAIL_CHARS:
                    detail = detail[:MAX_DETAIL_CHARS] + "..."
                lines.append(f"- {result.example_id}: {detail}")
            lines.append("")

        lines.append(
            "**Constraint**: The next attempt must take a different route "
            "around the failures above."
        )
        return "\n".join(lines)

    def approaches_tried(self, history: Sequence[IterationRecord]) -> tuple[str, ...]:
        """Distinct hypothesis approaches, oldest first."""
        approaches: list[str] = []
        seen: set[str] = set()
        for record in history:
            approach = record.hypothesis.approach.strip()
            if approach and approach not in seen:
                seen.add(approach)
                approaches.append(approach)
        return tuple(approaches)
