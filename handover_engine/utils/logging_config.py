"""
Structured logging for the handover decision engine.

Every module logs snake_case events with key/value context through
structlog (``snapshot_loaded``, ``handover_decision``, ``inference_failed``,
...). Inside a decision cycle the runner binds the logic module name and
the cycle index as context variables, so every event emitted while that
cycle runs (loader, strategy, emitter) carries ``module`` and ``iteration``
without each call site passing them.

Output is JSON for the controller deployment, or human-readable console
output for development.
"""
import sys
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Iterator

import structlog


def configure_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    json_output: bool = False
):
    """
    Configure structured logging for the decision engine.

    Safe to call more than once (the runner and the tests reconfigure it);
    the root level always follows the latest call.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file receiving the same events as the console
        json_output: If True, one JSON object per event; else console rendering

    Example:
        >>> configure_logging(log_level="DEBUG", json_output=True)
        >>> logger = get_logger(__name__)
        >>> logger.info("snapshot_loaded", terminals=12, cells=3)
    """
    level = getattr(logging, log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    # basicConfig is a no-op once handlers exist
    logging.getLogger().setLevel(level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter('%(message)s'))

        logging.getLogger().addHandler(file_handler)


def get_logger(name: str, **initial_context):
    """
    Get a structured logger, optionally pre-bound with context.

    Args:
        name: Logger name (usually __name__)
        **initial_context: Key/values added to every event of this logger

    Example:
        >>> logger = get_logger(__name__, strategy="distance")
        >>> logger.info("distance_decisions_computed", decisions=2)
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


@contextmanager
def cycle_context(module: str, iteration: int) -> Iterator[None]:
    """
    Tag every event logged inside the block with the logic module and cycle.

    Args:
        module: Logic module name
        iteration: Cycle index within the run
    """
    with structlog.contextvars.bound_contextvars(module=module, iteration=iteration):
        yield
