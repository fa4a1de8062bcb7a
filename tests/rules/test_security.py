"""Tests for DangerousCallRule."""

import pytest

from auditloop.domain.models import CodeArtifact, CodeFile, FailureCategory, Severity
from auditloop.rules import DangerousCallRule


def _check(source: str, path: str = "main.py"):
    return DangerousCallRule().check(CodeArtifact(files=(CodeFile(path, source),)))


class TestDangerousCallRule:
    def test_reports_as_security_rule(self) -> None:
        assert DangerousCallRule().category is FailureCategory.SECURITY

    @pytest.mark.parametrize(
        "source",
        [
            "eval(input())\n",
            "exec('x = 1')\n",
            "import os\nos.system('ls')\n",
            "import os\nos.popen('ls')\n",
            "import pickle\npickle.loads(b'')\n",
            "import subprocess\nsubprocess.run('ls', shell=True)\n",
            "import subprocess\nsubprocess.Popen('ls', shell=True)\n",
        ],
    )
    def test_flags_dangerous_call(self, source: str) -> None:
        failures = _check(source)

        assert len(failures) == 1
        assert failures[0].category is FailureCategory.SECURITY
        assert failures[0].severity is Severity.CRITICAL

    @pytest.mark.parametrize(
        "source",
        [
            "print(int(input()) * 2)\n",
            "import subprocess\nsubprocess.run(['ls'])\n",
            "import subprocess\nsubprocess.run(['ls'], shell=False)\n",
            "import ast\nast.literal_eval('1')\n",
        ],
    )
    def test_safe_code_passes(self, source: str) -> None:
        assert _check(source) == ()

    def test_location_has_line_number(self) -> None:
        failures = _check("x = 1\n\nresult = eval('x')\n", path="pkg/calc.py")

        assert failures[0].location == "pkg/calc.py:3"
        assert "eval()" in failures[0].description

    def test_non_python_files_ignored(self) -> None:
        assert _check("eval(x)", path="notes.txt") == ()

    def test_syntax_errors_ignored(self) -> None:
        assert _check("eval(\n") == ()
