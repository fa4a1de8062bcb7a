"""Configuration loading from JSON files."""

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any

from auditloop.domain.exceptions import ConfigurationError
from auditloop.domain.interfaces import BuildExecutorInterface, TextGeneratorInterface
from auditloop.domain.models import LoopConfig, ScoringWeights
from auditloop.infrastructure.logging_setup import LoggingConfig, setup_logging
from auditloop.infrastructure.registry import EXECUTORS, GENERATORS

logger = logging.getLogger(__name__)


def _read_json_object(path: Path) -> dict[str, Any]:
    """Read a JSON file whose top level must be an object.

    Raises:
        ConfigurationError: If the file is missing, not JSON or not an object
    """
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected dict in {path}, got {type(data).__name__}")
    return data


def _reject_unknown(data: dict[str, Any], cls: type, where: str) -> None:
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown keys in {where}: {', '.join(unknown)}")


def loop_config_from_dict(data: dict[str, Any], source: str = "config") -> LoopConfig:
    """
    Build a LoopConfig from a plain dict.

    Raises:
        ConfigurationError: On unknown keys, wrong types or invalid values
    """
    data = dict(data)
    _reject_unknown(data, LoopConfig, source)

    weights = data.pop("weights", None)
    if weights is not None:
        if not isinstance(weights, dict):
            raise ConfigurationError(f"'weights' in {source} must be a dict")
        _reject_unknown(weights, ScoringWeights, f"{source} weights")
        try:
            data["weights"] = ScoringWeights(**weights)
        except TypeError as e:
            raise ConfigurationError(f"Invalid weights in {source}: {e}") from e

    try:
        return LoopConfig(**data)
    except TypeError as e:
        # Comparison of a wrongly typed value against a bound
        raise ConfigurationError(f"Invalid value in {source}: {e}") from e


def load_loop_config(path: Path | str) -> LoopConfig:
    """
    Load the loop configuration from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Validated LoopConfig

    Raises:
        ConfigurationError: If file is missing or invalid
    """
    path = Path(path)
    data = _read_json_object(path)
    # Read by configure_logging
    data.pop("logging", None)
    config = loop_config_from_dict(data, str(path))
    logger.debug("Loaded loop config from %s: %s", path, config)
    return config


def configure_logging(path: Path | str) -> logging.Logger:
    """
    Set up loop logging from the optional "logging" section of a JSON file.

    Expected layout:
        {"logging": {"verbose": true, "log_file": "runs/loop.log"}}

    A file without the section gets console logging at INFO.

    Raises:
        ConfigurationError: If the file or the section is invalid
    """
    path = Path(path)
    section = _read_json_object(path).get("logging", {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"'logging' in {path} must be a dict")
    _reject_unknown(section, LoggingConfig, f"{path} logging")
    return setup_logging(LoggingConfig(**section))


def load_collaborators(
    path: Path | str,
) -> tuple[TextGeneratorInterface, BuildExecutorInterface]:
    """
    Instantiate the generator and executor named in a JSON file.

    Expected layout:
        {
          "generator": {"name": "OpenAICompatibleGenerator", "config": {...}},
          "executor": {"name": "SubprocessBuildExecutor", "config": {...}}
        }

    Raises:
        ConfigurationError: If the file is invalid or a name is unknown
    """
    path = Path(path)
    data = _read_json_object(path)

    sections = (("generator", GENERATORS), ("executor", EXECUTORS))
    for key, _ in sections:
        section = data.get(key)
        if not isinstance(section, dict) or not section.get("name"):
            raise ConfigurationError(f"{path}: '{key}' must name a registered {key}")
        if not isinstance(section.get("config", {}), dict):
            raise ConfigurationError(f"{path}: '{key}.config' must be a dict")

    instances: list[Any] = []
    for key, registry in sections:
        section = data[key]
        config = section.get("config", {})
        try:
            instances.append(registry.create(section["name"], **config))
        except (KeyError, TypeError) as e:
            raise ConfigurationError(f"{path}: cannot create {key}: {e}") from e

    generator, executor = instances
    return generator, executor
