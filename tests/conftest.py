"""Shared pytest fixtures for auditloop tests."""

import json

import pytest

from auditloop.domain.models import (
    AgentTask,
    AnalysisArtifact,
    AuditScore,
    CodeArtifact,
    CodeFile,
    Decision,
    Example,
    HypothesisArtifact,
    IterationRecord,
    Request,
    Requirement,
    TerminationDecision,
    TestResult,
    ValidationReport,
)
from auditloop.infrastructure.execution.mock import MockBuildExecutor


class PhaseReplies:
    """Builds collaborator replies the way an LLM would send them."""

    def analysis(
        self,
        requirements: list[tuple[str, str]] | None = None,
        examples: list[tuple[str, str, str, list[str]]] | None = None,
    ) -> str:
        if requirements is None:
            requirements = [("R1", "doubles small numbers"), ("R2", "doubles 2")]
        if examples is None:
            examples = [("e1", "1", "2", ["R1"]), ("e2", "2", "4", ["R2"])]
        payload = {
            "requirements": [{"id": i, "description": d} for i, d in requirements],
            "constraints": ["read stdin, write stdout"],
            "examples": [
                {"id": i, "input": inp, "expected_output": out, "requirement_ids": t}
                for i, inp, out, t in examples
            ],
            "risks": [],
            "open_questions": [],
        }
        return f"Here is the analysis:\n```json\n{json.dumps(payload)}\n```"

    def hypothesis(self, approach: str = "multiply the input by two") -> str:
        payload = {
            "approach": approach,
            "rationale": "simplest thing that works",
            "tasks": [{"collaborator": "code_executor", "sub_goal": "write main.py"}],
            "expected_behavior": "prints twice the input",
            "edge_cases": ["zero"],
        }
        return json.dumps(payload)

    def code(self, content: str, path: str = "main.py") -> str:
        payload = {"files": [{"path": path, "content": content}], "notes": ""}
        return f"```json\n{json.dumps(payload)}\n```"

    def review(
        self,
        findings: list[dict[str, str]] | None = None,
        suggestions: list[str] | None = None,
    ) -> str:
        payload = {"findings": findings or [], "suggestions": suggestions or []}
        return json.dumps(payload)

    def iteration(self, content: str, approach: str = "multiply by two") -> list[str]:
        """HYPOTHESIZE, CODE and VALIDATE replies for one refinement."""
        return [self.hypothesis(approach), self.code(content), self.review()]


@pytest.fixture
def replies() -> PhaseReplies:
    return PhaseReplies()


def _double_if_asked(code: CodeArtifact, input: str) -> str:
    """Candidate containing 'double' doubles the input; anything else echoes."""
    content = code.files[0].content
    if "double" in content:
        return str(int(input) * 2)
    return input


@pytest.fixture
def doubling_executor() -> MockBuildExecutor:
    """Executor whose behaviour depends on the candidate's content."""
    return MockBuildExecutor(_double_if_asked)


@pytest.fixture
def sample_request() -> Request:
    return Request(
        problem="Read an integer from stdin and print twice its value",
        constraints=("Python 3 only",),
        request_id="req-001",
    )


@pytest.fixture
def sample_analysis() -> AnalysisArtifact:
    return AnalysisArtifact(
        requirements=(
            Requirement("R1", "doubles small numbers"),
            Requirement("R2", "doubles 2"),
        ),
        constraints=("read stdin, write stdout",),
        examples=(
            Example("e1", "1", "2", ("R1",)),
            Example("e2", "2", "4", ("R2",)),
        ),
    )


@pytest.fixture
def sample_code() -> CodeArtifact:
    return CodeArtifact(
        files=(CodeFile("main.py", "print(int(input()) * 2)  # double"),),
        artifact_id="code-001",
    )


@pytest.fixture
def sample_record(
    sample_analysis: AnalysisArtifact, sample_code: CodeArtifact
) -> IterationRecord:
    """A committed first iteration with one failing example."""
    return IterationRecord(
        iteration_index=1,
        analysis=sample_analysis,
        hypothesis=HypothesisArtifact(
            approach="echo the input",
            tasks=(AgentTask("code_executor", "write main.py"),),
        ),
        code=sample_code,
        report=ValidationReport(
            results=(
                TestResult("e1", True, "2", "", ("R1",)),
                TestResult("e2", False, "2", "Expected '4', got '2'", ("R2",)),
            ),
        ),
        score=AuditScore(
            test_score=0.5,
            requirements_score=0.5,
            architecture_score=1.0,
            security_score=1.0,
            overall=0.65,
        ),
        decision=TerminationDecision(
            decision=Decision.REFINE,
            confidence=0.65,
            reason="Score 0.65 below threshold 0.85 with 1 open failure(s)",
        ),
    )
