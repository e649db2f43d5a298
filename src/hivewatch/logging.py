"""Structured logging configuration using structlog with async context propagation."""

import logging
import os

import structlog

# Every Hive RPC, HAFSQL and HAFBE call goes through httpx; uvicorn.access
# would log each dashboard poll.
UPSTREAM_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def quiet_upstream_loggers(level: int = logging.WARNING) -> None:
    """Raise the threshold of the HTTP client and access loggers.

    Node failover and per-call warnings are logged by hivewatch itself, so
    the per-request lines from these libraries only add noise.
    """
    for name in UPSTREAM_LOGGERS:
        logging.getLogger(name).setLevel(level)


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structlog with JSON or console rendering.

    Request-scoped fields (witness, account, endpoint) are bound through
    structlog.contextvars so they follow a request across awaits.
    Rendering format is controlled by the LOG_FORMAT environment variable:
    - "json" for deployments (one event per line)
    - "console" for local development (default)
    """
    log_format = os.environ.get("LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
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
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    quiet_upstream_loggers()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
