"""
Structured logging configuration using structlog.

Logs go to stderr so CLI output on stdout stays machine-readable. Request
handlers bind a request_id through structlog.contextvars, and it is merged
into every line logged while that request is decoded.
"""

import logging
import sys
from typing import Optional
import structlog

from .config import settings


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configure structlog for the decoder.

    Args:
        level: Minimum level name, e.g. "DEBUG"; defaults to settings.log_level
        json_logs: Render JSON lines instead of console output; defaults to
            settings.log_json
    """
    level_name = (level or settings.log_level).upper()
    if json_logs is None:
        json_logs = settings.log_json

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level_name)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # Not cached: the CLI reconfigures the level after module loggers exist
        cache_logger_on_first_use=False,
    )
