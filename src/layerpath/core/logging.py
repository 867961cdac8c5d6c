"""
Structured logging configuration for layerpath.

Uses structlog (https://www.structlog.org/). Library modules under
``geometry`` and ``slicing`` log through the standard library; the emitter and
the pipeline log structured events. Both end up in the same handlers, rendered
as JSON lines or as colored console output.

Usage::

    from layerpath.core.logging import configure_logging, get_logger, job_context

    configure_logging(level="INFO")  # Call once at startup
    logger = get_logger(__name__)

    with job_context("vase", dialect="sinumerik", mode="spline"):
        logger.info("program_emitted", instructions=5120)  # carries job/dialect/mode
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

# Libraries that are chatty at INFO while loading and sectioning meshes
QUIET_LOGGERS = ("trimesh",)


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure structured logging for layerpath.

    Call this once at startup (cli.py does).

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Render JSON lines instead of console lines.
        log_file: Optional path to write logs to in addition to stderr.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=handlers,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    # Also applied to stdlib records, so slicing messages carry the job context
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@contextmanager
def job_context(job: str, dialect: str, mode: str) -> Iterator[None]:
    """
    Bind the identity of a generation run to every event logged inside it.

    Values are held in context variables and restored on exit, so nested or
    concurrent runs keep their own context.

    Args:
        job: Job or program name.
        dialect: Target dialect name.
        mode: Requested interpolation mode.
    """
    with structlog.contextvars.bound_contextvars(job=job, dialect=dialect, mode=mode):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for the given module name."""
    return structlog.get_logger(name)
