from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

LOGGER_NAME = "repo_merge"

_STRUCTLOG_CONFIGURED = False


def _route_stdlib_output(filename: str | Path | None) -> None:
    """Point the stdlib root logger at stderr or at `filename`."""
    handler: logging.Handler
    if filename:
        handler = logging.FileHandler(str(filename), encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    logging.basicConfig(
        level=logging.INFO,
        handlers=[handler],
        format="%(message)s",
        force=True,
    )


def setup_logging(filename: str | Path | None = None) -> structlog.BoundLogger:
    """Set up structured logging for the repo_merge module.

    structlog itself is configured once; calling again with a `filename`
    only re-routes the JSON lines to that file, so a `--log-file` given on
    the command line takes effect after the module-level logger exists.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.

    Returns:
        A structlog logger instance configured for the repo_merge module.
    """
    global _STRUCTLOG_CONFIGURED  # noqa: PLW0603
    if not _STRUCTLOG_CONFIGURED:
        _route_stdlib_output(filename)
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _STRUCTLOG_CONFIGURED = True
    elif filename:
        _route_stdlib_output(filename)

    return structlog.get_logger(LOGGER_NAME)


logger = setup_logging()
