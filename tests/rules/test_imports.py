"""Tests for ForbiddenImportRule."""

from auditloop.domain.models import CodeArtifact, CodeFile, FailureCategory, Severity
from auditloop.rules import ForbiddenImportRule


def _code(*files: tuple[str, str]) -> CodeArtifact:
    return CodeArtifact(files=tuple(CodeFile(path, content) for path, content in files))


class TestForbiddenImportRule:
    def setup_method(self) -> None:
        self.rule = ForbiddenImportRule(
            "app/domain/", ("app.infrastructure", "requests")
        )

    def test_reports_as_architecture_rule(self) -> None:
        assert self.rule.category is FailureCategory.ARCHITECTURE

    def test_clean_file_passes(self) -> None:
        code = _code(
            ("app/domain/model.py", "import dataclasses\nfrom typing import Any\n")
        )

        assert self.rule.check(code) == ()

    def test_import_statement_flagged(self) -> None:
        code = _code(("app/domain/model.py", "import requests\n"))

        failures = self.rule.check(code)

        assert len(failures) == 1
        assert failures[0].category is FailureCategory.ARCHITECTURE
        assert failures[0].severity is Severity.MAJOR
        assert failures[0].location == "app/domain/model.py:1"

    def test_from_import_of_submodule_flagged(self) -> None:
        code = _code(
            (
                "app/domain/service.py",
                "import os\n\nfrom app.infrastructure.db import Session\n",
            )
        )

        failures = self.rule.check(code)

        assert [f.location for f in failures] == ["app/domain/service.py:3"]
        assert "app.infrastructure.db" in failures[0].description

    def test_similar_prefix_not_flagged(self) -> None:
        code = _code(("app/domain/model.py", "import requests_cache\n"))

        assert self.rule.check(code) == ()

    def test_nested_import_flagged(self) -> None:
        source = "def load():\n    import requests\n    return requests\n"

        failures = self.rule.check(_code(("app/domain/lazy.py", source)))

        assert [f.location for f in failures] == ["app/domain/lazy.py:2"]

    def test_relative_imports_ignored(self) -> None:
        code = _code(("app/domain/model.py", "from . import requests\n"))

        assert self.rule.check(code) == ()

    def test_files_outside_prefix_ignored(self) -> None:
        code = _code(("app/infrastructure/http.py", "import requests\n"))

        assert self.rule.check(code) == ()

    def test_non_python_and_unparsable_files_skipped(self) -> None:
        code = _code(
            ("app/domain/README.md", "import requests"),
            ("app/domain/broken.py", "import requests\ndef (:\n"),
        )

        assert self.rule.check(code) == ()

    def test_custom_severity(self) -> None:
        rule = ForbiddenImportRule("", ("pickle",), severity=Severity.MINOR)

        failures = rule.check(_code(("main.py", "import pickle\n")))

        assert failures[0].severity is Severity.MINOR
