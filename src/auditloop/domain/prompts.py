"""
Prompt structures for phase dispatch.

This module provides:
- PhasePromptTemplate: Structured prompt rendering from a ContextPackage
- default_templates(): Minimal templates, one per phase

Templates only frame the request and the JSON contract; richer agent prose
belongs to the calling application.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from auditloop.domain.models import Phase

if TYPE_CHECKING:
    from auditloop.domain.models import AnalysisArtifact, ContextPackage

# Failures shown per prior iteration in the HISTORY section
MAX_HISTORY_FAILURES = 5


@dataclass(frozen=True)
class PhasePromptTemplate:
    """Structured prompt template for one phase."""

    role: str
    constraints: str
    task: str
    output_contract: str
    feedback_wrapper: str = (
        "Iteration {index} ({decision}, score {overall:.2f}):\n{failures}"
    )

    def render(self, context: "ContextPackage") -> str:
        """Render prompt with context."""
        parts = [
            f"# ROLE\n{self.role}",
            f"# CONSTRAINTS\n{self.constraints}",
            self._render_request(context),
        ]

        if context.analysis is not None:
            parts.append(self._render_analysis(context.analysis))
        if context.hypothesis is not None:
            hypothesis = context.hypothesis
            lines = [f"# HYPOTHESIS\nApproach: {hypothesis.approach}"]
            if hypothesis.expected_behavior:
                lines.append(f"Expected behavior: {hypothesis.expected_behavior}")
            for edge_case in hypothesis.edge_cases:
                lines.append(f"Edge case: {edge_case}")
            parts.append("\n".join(lines))
        if context.code is not None:
            files = "\n\n".join(
                f"## {f.path}\n{f.content}" for f in context.code.files
            )
            parts.append(f"# CODE\n{files}")

        if context.history:
            parts.append("# HISTORY (Previous Iterations)")
            for record in context.history:
                failures = record.report.failures[:MAX_HISTORY_FAILURES]
                failure_text = (
                    "\n".join(
                        f"- [{f.severity.value}] {f.category.value} at "
                        f"{f.location}: {f.description}"
                        for f in failures
                    )
                    or "- no failures recorded"
                )
                parts.append(
                    self.feedback_wrapper.format(
                        index=record.iteration_index,
                        decision=record.decision.decision.value,
                        overall=record.score.overall,
                        failures=failure_text,
                    )
                )

        if context.specific_focus:
            parts.append(f"# FOCUS\n{context.specific_focus}")

        parts.append(f"# TASK\n{self.task}")
        parts.append(f"# OUTPUT\n{self.output_contract}")
        return "\n\n".join(parts)

    def _render_request(self, context: "ContextPackage") -> str:
        request = context.request
        text = f"# REQUEST\n{request.problem}"
        if request.constraints:
            text += "\n" + "\n".join(f"- {c}" for c in request.constraints)
        return text

    def _render_analysis(self, analysis: "AnalysisArtifact") -> str:
        lines = ["# ANALYSIS"]
        for req in analysis.requirements:
            lines.append(f"{req.requirement_id}: {req.description}")
        for constraint in analysis.constraints:
            lines.append(f"Constraint: {constraint}")
        for example in analysis.examples:
            tags = ", ".join(example.requirement_ids)
            lines.append(
                f"Example {example.example_id} [{tags}]: "
                f"input={example.input!r} expected={example.expected_output!r}"
            )
        return "\n".join(lines)


# =============================================================================
# DEFAULT TEMPLATES
# =============================================================================

_ANALYSIS_CONTRACT = (
    "Reply with a single JSON object: "
    '{"requirements": [{"id": str, "description": str}], '
    '"constraints": [str], '
    '"examples": [{"id": str, "input": str, "expected_output": str, '
    '"requirement_ids": [str]}], '
    '"risks": [str], "open_questions": [str]}'
)

_HYPOTHESIS_CONTRACT = (
    "Reply with a single JSON object: "
    '{"approach": str, "rationale": str, '
    '"tasks": [{"collaborator": str, "sub_goal": str}], '
    '"expected_behavior": str, "edge_cases": [str]}'
)

_CODE_CONTRACT = (
    "Reply with a single JSON object: "
    '{"files": [{"path": str, "content": str}], '
    '"dependencies": [str], "notes": str}'
)

_REVIEW_CONTRACT = (
    "Reply with a single JSON object: "
    '{"findings": [{"category": "correctness|architecture|security|completeness", '
    '"severity": "critical|major|minor|info", "location": str, '
    '"description": str}], "suggestions": [str]}'
)


def default_templates() -> dict[Phase, PhasePromptTemplate]:
    """Return one minimal template per phase."""
    return {
        Phase.ANALYZE: PhasePromptTemplate(
            role="task planner",
            constraints="Every requirement gets a unique id. Every example "
            "names the requirement ids it exercises.",
            task="Analyze the request into requirements, constraints, "
            "input/output examples, risks and open questions.",
            output_contract=_ANALYSIS_CONTRACT,
        ),
        Phase.HYPOTHESIZE: PhasePromptTemplate(
            role="architect",
            constraints="Address every requirement and every failure listed "
            "in the history.",
            task="Propose an implementation approach and assign sub-goals "
            "to collaborators.",
            output_contract=_HYPOTHESIS_CONTRACT,
        ),
        Phase.CODE: PhasePromptTemplate(
            role="code executor",
            constraints="Produce complete files. The program reads the example "
            "input from stdin and writes its answer to stdout.",
            task="Implement the hypothesis.",
            output_contract=_CODE_CONTRACT,
        ),
        Phase.VALIDATE: PhasePromptTemplate(
            role="quality auditor",
            constraints="Report only concrete defects. Security findings must "
            "name the offending file.",
            task="Review the code for correctness, layering and security "
            "defects.",
            output_contract=_REVIEW_CONTRACT,
        ),
    }
