import logging
import sys
import uuid

import structlog

from config.settings import settings

# Libraries that log every request line at INFO
_NOISY_LOGGERS = ("httpx", "openai", "mcp", "botocore")


def configure_logging() -> None:
    """Configure structlog for structured JSON output to stderr."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Standard library logging config (uvicorn, sqlalchemy, langchain)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.ExceptionRenderer(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def bind_request_context(resolver: str) -> str:
    """Start a fresh log context for one resolver request. Returns its request id."""
    request_id = str(uuid.uuid4())
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, resolver=resolver)
    return request_id
