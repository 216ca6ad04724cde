"""
Structured logging for the course catalog API.

Every record, whether emitted through structlog or a stdlib logger such as
SQLAlchemy's or uvicorn's, is rendered as one JSON object on stdout. Records
logged while a request is being served carry its ``request_id`` (bound by
``middleware/logging.py``) and every record names the service.
"""

import logging
import sys
from typing import Optional, Union

import structlog

SERVICE_NAME = "course-catalog"

# The request middleware already logs one line per request
_QUIET_LOGGERS = ("uvicorn.access",)


def _add_service(logger, method_name, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Route stdlib and structlog records through one JSON formatter.

    Called once when ``course_catalog.main`` is imported; calling it again
    replaces the root handler rather than adding a second one.
    """
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        _add_service,
        timestamper,
    ]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.add_logger_name, *shared_processors],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None):
    """Return a structlog logger, e.g. ``logger = get_logger(__name__)``."""
    return structlog.get_logger(name)
