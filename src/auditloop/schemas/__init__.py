"""Structured response schemas for phase dispatch.

Each phase's collaborator reply must decode into the matching pydantic
model. Models forbid unknown fields so that a reply that drifts from the
contract is rejected instead of silently truncated.

These are OUTPUT schemas for LLM extraction - NOT domain records.
``to_artifact()`` converts a validated payload into the immutable domain
artifact.

Usage:
    from auditloop.schemas import parse_phase_payload

    artifact = parse_phase_payload(Phase.CODE, json.loads(text))
    # Raises pydantic.ValidationError if the payload breaks the contract
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from auditloop.domain.models import (
    AgentTask,
    AnalysisArtifact,
    CodeArtifact,
    CodeFile,
    Example,
    FailureCategory,
    Finding,
    HypothesisArtifact,
    Phase,
    Requirement,
    ReviewArtifact,
    Severity,
)

PhaseArtifact = AnalysisArtifact | HypothesisArtifact | CodeArtifact | ReviewArtifact


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


# =============================================================================
# ANALYZE
# =============================================================================


class RequirementPayload(_StrictModel):
    id: str = Field(min_length=1)
    description: str


class ExamplePayload(_StrictModel):
    id: str = Field(min_length=1)
    input: str
    expected_output: str
    requirement_ids: list[str] = Field(default_factory=list)


class AnalysisPayload(_StrictModel):
    """Structured output from the ANALYZE phase."""

    requirements: list[RequirementPayload]
    constraints: list[str] = Field(default_factory=list)
    examples: list[ExamplePayload] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    open_questions: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self) -> "AnalysisPayload":
        for label, ids in (
            ("requirement", [r.id for r in self.requirements]),
            ("example", [e.id for e in self.examples]),
        ):
            if len(ids) != len(set(ids)):
                raise ValueError(f"{label} ids must be unique")
        return self

    def to_artifact(self) -> AnalysisArtifact:
        return AnalysisArtifact(
            requirements=tuple(
                Requirement(requirement_id=r.id, description=r.description)
                for r in self.requirements
            ),
            constraints=tuple(self.constraints),
            examples=tuple(
                Example(
                    example_id=e.id,
                    input=e.input,
                    expected_output=e.expected_output,
                    requirement_ids=tuple(e.requirement_ids),
                )
                for e in self.examples
            ),
            risks=tuple(self.risks),
            open_questions=tuple(self.open_questions),
        )


# =============================================================================
# HYPOTHESIZE
# =============================================================================


class AgentTaskPayload(_StrictModel):
    collaborator: str = Field(min_length=1)
    sub_goal: str


class HypothesisPayload(_StrictModel):
    """Structured output from the HYPOTHESIZE phase."""

    approach: str = Field(min_length=1)
    rationale: str = ""
    tasks: list[AgentTaskPayload] = Field(default_factory=list)
    expected_behavior: str = ""
    edge_cases: list[str] = Field(default_factory=list)

    def to_artifact(self) -> HypothesisArtifact:
        return HypothesisArtifact(
            approach=self.approach,
            rationale=self.rationale,
            tasks=tuple(
                AgentTask(collaborator=t.collaborator, sub_goal=t.sub_goal)
                for t in self.tasks
            ),
            expected_behavior=self.expected_behavior,
            edge_cases=tuple(self.edge_cases),
        )


# =============================================================================
# CODE
# =============================================================================


class CodeFilePayload(_StrictModel):
    path: str = Field(min_length=1)
    content: str


class CodePayload(_StrictModel):
    """Structured output from the CODE phase."""

    files: list[CodeFilePayload] = Field(min_length=1)
    dependencies: list[str] = Field(default_factory=list)
    notes: str = ""

    def to_artifact(self) -> CodeArtifact:
        return CodeArtifact(
            files=tuple(CodeFile(path=f.path, content=f.content) for f in self.files),
            dependencies=tuple(self.dependencies),
            notes=self.notes,
        )


# =============================================================================
# VALIDATE (review)
# =============================================================================


class FindingPayload(_StrictModel):
    category: Literal["correctness", "architecture", "security", "completeness"]
    severity: Literal["critical", "major", "minor", "info"]
    location: str = ""
    description: str


class ReviewPayload(_StrictModel):
    """Structured output from the quality review in the VALIDATE phase."""

    findings: list[FindingPayload] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    def to_artifact(self) -> ReviewArtifact:
        return ReviewArtifact(
            findings=tuple(
                Finding(
                    category=FailureCategory(f.category),
                    severity=Severity(f.severity),
                    location=f.location,
                    description=f.description,
                )
                for f in self.findings
            ),
            suggestions=tuple(self.suggestions),
        )


PHASE_SCHEMAS: dict[Phase, type[BaseModel]] = {
    Phase.ANALYZE: AnalysisPayload,
    Phase.HYPOTHESIZE: HypothesisPayload,
    Phase.CODE: CodePayload,
    Phase.VALIDATE: ReviewPayload,
}


def parse_phase_payload(phase: Phase, data: Any) -> PhaseArtifact:
    """Validate decoded JSON against the phase schema and convert it.

    Raises:
        pydantic.ValidationError: If the payload breaks the contract
    """
    schema = PHASE_SCHEMAS[phase]
    payload = schema.model_validate(data)
    artifact: PhaseArtifact = payload.to_artifact()  # type: ignore[attr-defined]
    return artifact


__all__ = [
    "AgentTaskPayload",
    "AnalysisPayload",
    "CodeFilePayload",
    "CodePayload",
    "ExamplePayload",
    "FindingPayload",
    "HypothesisPayload",
    "PHASE_SCHEMAS",
    "PhaseArtifact",
    "RequirementPayload",
    "ReviewPayload",
    "parse_phase_payload",
]
