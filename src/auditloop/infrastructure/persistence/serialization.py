"""
JSON serialisation of IterationRecords.

Tuples become lists and enums become their values; loading restores the
exact frozen records.
"""

from typing import Any

from auditloop.domain.models import (
    AgentTask,
    AnalysisArtifact,
    AuditScore,
    CodeArtifact,
    CodeFile,
    Decision,
    Example,
    Failure,
    FailureCategory,
    HypothesisArtifact,
    IterationRecord,
    RefinementGuidance,
    Requirement,
    Severity,
    TerminationDecision,
    TestResult,
    ValidationReport,
)


def _failure_to_dict(failure: Failure) -> dict[str, Any]:
    return {
        "category": failure.category.value,
        "severity": failure.severity.value,
        "location": failure.location,
        "description": failure.description,
        "requirement_ids": list(failure.requirement_ids),
    }


def _failure_from_dict(data: dict[str, Any]) -> Failure:
    return Failure(
        category=FailureCategory(data["category"]),
        severity=Severity(data["severity"]),
        location=data["location"],
        description=data["description"],
        requirement_ids=tuple(data.get("requirement_ids", [])),
    )


def _analysis_to_dict(analysis: AnalysisArtifact) -> dict[str, Any]:
    return {
        "requirements": [
            {"requirement_id": r.requirement_id, "description": r.description}
            for r in analysis.requirements
        ],
        "constraints": list(analysis.constraints),
        "examples": [
            {
                "example_id": e.example_id,
                "input": e.input,
                "expected_output": e.expected_output,
                "requirement_ids": list(e.requirement_ids),
            }
            for e in analysis.examples
        ],
        "risks": list(analysis.risks),
        "open_questions": list(analysis.open_questions),
    }


def _analysis_from_dict(data: dict[str, Any]) -> AnalysisArtifact:
    return AnalysisArtifact(
        requirements=tuple(
            Requirement(r["requirement_id"], r["description"])
            for r in data["requirements"]
        ),
        constraints=tuple(data.get("constraints", [])),
        examples=tuple(
            Example(
                example_id=e["example_id"],
                input=e["input"],
                expected_output=e["expected_output"],
                requirement_ids=tuple(e.get("requirement_ids", [])),
            )
            for e in data.get("examples", [])
        ),
        risks=tuple(data.get("risks", [])),
        open_questions=tuple(data.get("open_questions", [])),
    )


def _hypothesis_to_dict(hypothesis: HypothesisArtifact) -> dict[str, Any]:
    return {
        "approach": hypothesis.approach,
        "rationale": hypothesis.rationale,
        "tasks": [
            {"collaborator": t.collaborator, "sub_goal": t.sub_goal}
            for t in hypothesis.tasks
        ],
        "expected_behavior": hypothesis.expected_behavior,
        "edge_cases": list(hypothesis.edge_cases),
    }


def _hypothesis_from_dict(data: dict[str, Any]) -> HypothesisArtifact:
    return HypothesisArtifact(
        approach=data["approach"],
        rationale=data.get("rationale", ""),
        tasks=tuple(
            AgentTask(t["collaborator"], t["sub_goal"]) for t in data.get("tasks", [])
        ),
        expected_behavior=data.get("expected_behavior", ""),
        edge_cases=tuple(data.get("edge_cases", [])),
    )


def _code_to_dict(code: CodeArtifact) -> dict[str, Any]:
    return {
        "artifact_id": code.artifact_id,
        "files": [{"path": f.path, "content": f.content} for f in code.files],
        "dependencies": list(code.dependencies),
        "notes": code.notes,
    }


def _code_from_dict(data: dict[str, Any]) -> CodeArtifact:
    return CodeArtifact(
        files=tuple(CodeFile(f["path"], f["content"]) for f in data["files"]),
        dependencies=tuple(data.get("dependencies", [])),
        notes=data.get("notes", ""),
        artifact_id=data["artifact_id"],
    )


def _report_to_dict(report: ValidationReport) -> dict[str, Any]:
    return {
        "results": [
            {
                "example_id": r.example_id,
                "passed": r.passed,
                "actual_output": r.actual_output,
                "detail": r.detail,
                "requirement_ids": list(r.requirement_ids),
            }
            for r in report.results
        ],
        "failures": [_failure_to_dict(f) for f in report.failures],
        "suggestions": list(report.suggestions),
        "rules_checked": report.rules_checked,
    }


def _report_from_dict(data: dict[str, Any]) -> ValidationReport:
    return ValidationReport(
        results=tuple(
            TestResult(
                example_id=r["example_id"],
                passed=r["passed"],
                actual_output=r.get("actual_output", ""),
                detail=r.get("detail", ""),
                requirement_ids=tuple(r.get("requirement_ids", [])),
            )
            for r in data["results"]
        ),
        failures=tuple(_failure_from_dict(f) for f in data.get("failures", [])),
        suggestions=tuple(data.get("suggestions", [])),
        rules_checked=data.get("rules_checked", 0),
    )


def _decision_to_dict(decision: TerminationDecision) -> dict[str, Any]:
    guidance = decision.guidance
    return {
        "decision": decision.decision.value,
        "confidence": decision.confidence,
        "reason": decision.reason,
        "stuck": decision.stuck,
        "analysis_defective": decision.analysis_defective,
        "guidance": None
        if guidance is None
        else {
            "priority": guidance.priority.value,
            "focus_areas": list(guidance.focus_areas),
            "suggested_actions": list(guidance.suggested_actions),
            "target_collaborators": list(guidance.target_collaborators),
            "estimated_remaining_iterations": guidance.estimated_remaining_iterations,
        },
    }


def _decision_from_dict(data: dict[str, Any]) -> TerminationDecision:
    guidance_data = data.get("guidance")
    guidance = None
    if guidance_data is not None:
        guidance = RefinementGuidance(
            priority=Severity(guidance_data["priority"]),
            focus_areas=tuple(guidance_data["focus_areas"]),
            suggested_actions=tuple(guidance_data["suggested_actions"]),
            target_collaborators=tuple(guidance_data["target_collaborators"]),
            estimated_remaining_iterations=guidance_data[
                "estimated_remaining_iterations"
            ],
        )
    return TerminationDecision(
        decision=Decision(data["decision"]),
        confidence=data["confidence"],
        reason=data["reason"],
        guidance=guidance,
        stuck=data.get("stuck", False),
        analysis_defective=data.get("analysis_defective", False),
    )


def record_to_dict(record: IterationRecord) -> dict[str, Any]:
    """Serialize an IterationRecord to a JSON-compatible dict."""
    score = record.score
    return {
        "iteration_index": record.iteration_index,
        "analysis": _analysis_to_dict(record.analysis),
        "hypothesis": _hypothesis_to_dict(record.hypothesis),
        "code": _code_to_dict(record.code),
        "report": _report_to_dict(record.report),
        "score": {
            "test_score": score.test_score,
            "requirements_score": score.requirements_score,
            "architecture_score": score.architecture_score,
            "security_score": score.security_score,
            "overall": score.overall,
        },
        "decision": _decision_to_dict(record.decision),
    }


def record_from_dict(data: dict[str, Any]) -> IterationRecord:
    """Deserialize an IterationRecord from a JSON dict."""
    return IterationRecord(
        iteration_index=data["iteration_index"],
        analysis=_analysis_from_dict(data["analysis"]),
        hypothesis=_hypothesis_from_dict(data["hypothesis"]),
        code=_code_from_dict(data["code"]),
        report=_report_from_dict(data["report"]),
        score=AuditScore(**data["score"]),
        decision=_decision_from_dict(data["decision"]),
    )
