"""
Logging for loop runs.

Every module logs under the ``auditloop`` logger tree. Example runs and
collaborator calls happen on worker threads, so records carry the thread
name.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from auditloop.domain.exceptions import ConfigurationError

ROOT_LOGGER = "auditloop"

# Third-party loggers that drown out the loop at DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")

CONSOLE_FORMAT = "%(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
FILE_FORMAT = f"%(asctime)s | {CONSOLE_FORMAT}"

# Marks handlers installed here so a second call replaces them
_HANDLER_FLAG = "_auditloop_handler"


@dataclass(frozen=True)
class LoggingConfig:
    """Where loop logs go and how much of them."""

    verbose: bool = False
    log_file: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.verbose, bool):
            raise ConfigurationError("logging.verbose must be true or false")
        if self.log_file is not None and not self.log_file:
            raise ConfigurationError("logging.log_file must be omitted or non-empty")


def setup_logging(
    config: LoggingConfig | None = None,
    logger_name: str = ROOT_LOGGER,
) -> logging.Logger:
    """
    Attach a console handler, and a file handler when configured.

    The console shows INFO (phase and decision milestones) unless verbose;
    the file always receives DEBUG, including prompt and payload sizes.
    Calling again replaces the handlers from the previous call.

    Args:
        config: Logging options (defaults to LoggingConfig())
        logger_name: Root of the logger tree to configure

    Returns:
        The configured logger
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()

    console: logging.Handler = logging.StreamHandler()
    console.setLevel(logging.DEBUG if config.verbose else logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    _install(logger, console)

    if config.log_file:
        path = Path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        _install(logger, file_handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


def _install(logger: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _HANDLER_FLAG, True)
    logger.addHandler(handler)
