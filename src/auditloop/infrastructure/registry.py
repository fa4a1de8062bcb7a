"""
Collaborator registry with entry point discovery.

Text generators and build executors are loaded by name from Python entry
points. External packages can register their own in their pyproject.toml:

    [project.entry-points."auditloop.generators"]
    MyGenerator = "mypackage.generators:MyGenerator"

    [project.entry-points."auditloop.executors"]
    MyExecutor = "mypackage.executors:MyExecutor"
"""

import warnings
from importlib.metadata import entry_points
from typing import Any, Generic, TypeVar

from auditloop.domain.interfaces import (
    BuildExecutorInterface,
    TextGeneratorInterface,
)

C = TypeVar("C")

GENERATOR_GROUP = "auditloop.generators"
EXECUTOR_GROUP = "auditloop.executors"


class CollaboratorRegistry(Generic[C]):
    """
    Registry for one kind of collaborator.

    Uses lazy loading - entry points are only loaded on first access.

    Example usage:
        generator = GENERATORS.create(
            "OpenAICompatibleGenerator", model="qwen2.5-coder:14b"
        )
    """

    def __init__(self, group: str, kind: str):
        """
        Args:
            group: Entry point group to discover
            kind: Human-readable collaborator kind for error messages
        """
        self.group = group
        self.kind = kind
        self._classes: dict[str, type[C]] = {}
        self._loaded = False

    def _load_entry_points(self) -> None:
        """Load classes from entry points (lazy, called once)."""
        if self._loaded:
            return

        for ep in entry_points(group=self.group):
            try:
                self._classes.setdefault(ep.name, ep.load())
            except Exception as e:
                warnings.warn(
                    f"Failed to load {self.kind} '{ep.name}' from entry point: {e}",
                    stacklevel=2,
                )

        self._loaded = True

    def register(self, name: str, collaborator_class: type[C]) -> None:
        """
        Manually register a class.

        Useful for testing or dynamically-created collaborators. A manual
        registration wins over an entry point of the same name.
        """
        self._classes[name] = collaborator_class

    def get(self, name: str) -> type[C]:
        """
        Get a class by name.

        Raises:
            KeyError: If no class is registered under name
        """
        self._load_entry_points()
        if name not in self._classes:
            available = ", ".join(sorted(self._classes)) or "(none)"
            raise KeyError(
                f"{self.kind.capitalize()} '{name}' not found. "
                f"Available: {available}"
            )
        return self._classes[name]

    def create(self, name: str, **config: Any) -> C:
        """
        Create an instance by name.

        Raises:
            KeyError: If no class is registered under name
            TypeError: If config doesn't match the constructor signature
        """
        collaborator_class = self.get(name)
        return collaborator_class(**config)

    def available(self) -> list[str]:
        """List registered names."""
        self._load_entry_points()
        return sorted(self._classes)

    def clear(self) -> None:
        """
        Clear all registered classes (useful for testing).

        Also resets the loaded flag so entry points can be reloaded.
        """
        self._classes.clear()
        self._loaded = False


GENERATORS: CollaboratorRegistry[TextGeneratorInterface] = CollaboratorRegistry(
    GENERATOR_GROUP, "generator"
)
EXECUTORS: CollaboratorRegistry[BuildExecutorInterface] = CollaboratorRegistry(
    EXECUTOR_GROUP, "executor"
)
