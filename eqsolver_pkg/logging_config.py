"""Structured logging for the eqsolver engine.

Every module logs under the ``eqsolver`` hierarchy. Solver records carry
the strategy, Newton seed and error code as ``extra`` fields; the formatter
appends whichever of them a record has as ``key=value`` pairs:

    2024-05-01T10:00:00 [DEBUG] eqsolver.solver: Strategy failed strategy=linear code=NON_LINEAR
"""

import logging
import sys
from datetime import datetime
from typing import Optional, TextIO

ROOT_LOGGER = "eqsolver"

# Record attributes rendered after the message when present
CONTEXT_FIELDS = ("strategy", "seed", "code")

_OWNED = "_eqsolver_handler"


class StructuredFormatter(logging.Formatter):
    """``<iso timestamp> [LEVEL] logger: message key=value ...`` plus any traceback."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        line = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        context = " ".join(
            f"{field}={getattr(record, field)}"
            for field in CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        )
        if context:
            line = f"{line} {context}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    handler.setFormatter(StructuredFormatter())
    setattr(handler, _OWNED, True)
    logger.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the ``eqsolver`` logger for the CLI.

    Handlers installed by an earlier call are closed and replaced, so calling
    this again (each CLI run, each test) never duplicates output. Handlers
    added by anyone else are left alone.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Also append log lines to this file
        stream: Console stream (default: stderr, looked up at call time)
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in [h for h in logger.handlers if getattr(h, _OWNED, False)]:
        logger.removeHandler(handler)
        handler.close()

    _attach(logger, logging.StreamHandler(stream or sys.stderr))
    if log_file:
        _attach(logger, logging.FileHandler(log_file))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the ``eqsolver.<name>`` logger for a module."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
