"""
Convention Enforcement Tests.

Permanent tests that catch anti-patterns which import-based layer rules
cannot detect: frozen dataclass conventions, immutable collections,
silent exception swallowing, and interface contracts.
"""

import ast
import inspect
from pathlib import Path

SRC_ROOT = Path(__file__).parent.parent.parent / "src" / "auditloop"


def _dataclass_info(filepath: Path) -> list[tuple[str, bool]]:
    """Parse a file and return (class_name, is_frozen) for each @dataclass."""
    tree = ast.parse(filepath.read_text())
    results = []

    for node in ast.walk(tree):
        if not isinstance(node, ast.ClassDef):
            continue
        for decorator in node.decorator_list:
            if isinstance(decorator, ast.Name) and decorator.id == "dataclass":
                results.append((node.name, False))
            elif (
                isinstance(decorator, ast.Call)
                and isinstance(decorator.func, ast.Name)
                and decorator.func.id == "dataclass"
            ):
                is_frozen = any(
                    kw.arg == "frozen"
                    and isinstance(kw.value, ast.Constant)
                    and kw.value.value is True
                    for kw in decorator.keywords
                )
                results.append((node.name, is_frozen))
    return results


class TestFrozenDataclassConvention:
    """All domain dataclasses must be frozen."""

    def test_domain_models_are_frozen(self) -> None:
        violations = []
        for filepath in (SRC_ROOT / "domain").glob("*.py"):
            for class_name, is_frozen in _dataclass_info(filepath):
                if not is_frozen:
                    violations.append(f"{filepath.name}:{class_name}")

        assert not violations, f"Domain dataclasses must be frozen: {violations}"


class TestImmutableCollections:
    """Frozen domain model fields should use tuple, not list."""

    def test_domain_models_use_tuples_not_lists(self) -> None:
        models_file = SRC_ROOT / "domain" / "models.py"
        source = models_file.read_text()
        tree = ast.parse(source)

        violations = []
        for node in ast.walk(tree):
            if not isinstance(node, ast.ClassDef):
                continue
            for item in node.body:
                if isinstance(item, ast.AnnAssign):
                    annotation = ast.get_source_segment(source, item.annotation) or ""
                    if "list[" in annotation.lower() or "dict[" in annotation.lower():
                        target = getattr(item.target, "id", "?")
                        violations.append(f"{node.name}.{target}: {annotation}")

        assert not violations, (
            "Frozen dataclass fields should use tuple, not list/dict:\n"
            + "\n".join(f"  - {v}" for v in violations)
        )


class TestNoSilentExceptionSwallowing:
    """No bare 'except:' and no 'except ...: pass' in src/."""

    def test_no_bare_or_silent_except(self) -> None:
        violations = []

        for py_file in SRC_ROOT.rglob("*.py"):
            source = py_file.read_text()
            tree = ast.parse(source)

            for node in ast.walk(tree):
                if not isinstance(node, ast.ExceptHandler):
                    continue
                rel_path = py_file.relative_to(SRC_ROOT.parent.parent)
                if node.type is None:
                    violations.append(f"{rel_path}:{node.lineno}: bare except")
                    continue
                if len(node.body) == 1:
                    stmt = node.body[0]
                    is_ellipsis = (
                        isinstance(stmt, ast.Expr)
                        and isinstance(stmt.value, ast.Constant)
                        and stmt.value.value is ...
                    )
                    if isinstance(stmt, ast.Pass) or is_ellipsis:
                        violations.append(f"{rel_path}:{node.lineno}: except: pass")

        assert not violations, "Silent exception swallowing found:\n" + "\n".join(
            f"  - {v}" for v in violations
        )


class TestInterfaceConventions:
    """Interface naming and contract conventions."""

    def test_all_ports_end_with_interface(self) -> None:
        from auditloop.domain import interfaces

        abstract_classes = [
            name
            for name, obj in inspect.getmembers(interfaces, inspect.isclass)
            if inspect.isabstract(obj) and not name.startswith("_")
        ]

        violations = [
            name for name in abstract_classes if not name.endswith("Interface")
        ]

        assert not violations, (
            f"Abstract classes should end with 'Interface': {violations}"
        )

    def test_all_interface_methods_are_abstract(self) -> None:
        from auditloop.domain import interfaces

        violations = []

        for name, cls in inspect.getmembers(interfaces, inspect.isclass):
            if not inspect.isabstract(cls) or not name.endswith("Interface"):
                continue

            for method_name, method in inspect.getmembers(
                cls, predicate=inspect.isfunction
            ):
                if method_name.startswith("_"):
                    continue
                if not getattr(method, "__isabstractmethod__", False):
                    violations.append(f"{name}.{method_name}")

        assert not violations, (
            f"Public interface methods must be abstract: {violations}"
        )

    def test_adapters_are_concrete(self) -> None:
        """Every shipped adapter implements all abstract methods of its port."""
        from auditloop.domain.history import IterationHistory
        from auditloop.infrastructure.execution import (
            MockBuildExecutor,
            SubprocessBuildExecutor,
        )
        from auditloop.infrastructure.llm import (
            MockTextGenerator,
            OpenAICompatibleGenerator,
        )
        from auditloop.infrastructure.persistence import FilesystemIterationHistory
        from auditloop.rules import DangerousCallRule, ForbiddenImportRule

        adapters = [
            IterationHistory,
            FilesystemIterationHistory,
            MockBuildExecutor,
            SubprocessBuildExecutor,
            MockTextGenerator,
            OpenAICompatibleGenerator,
            DangerousCallRule,
            ForbiddenImportRule,
        ]

        abstract = [cls.__name__ for cls in adapters if inspect.isabstract(cls)]

        assert not abstract, f"Adapters with unimplemented methods: {abstract}"
