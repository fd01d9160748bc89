"""Logging configuration shared by the inventory and ordering processes.

Both the API (``app.py``) and the background runner (``server.py``) call
``configure_logging()`` once at start-up. Modules obtain loggers with
``structlog.get_logger(__name__)`` and log key/value pairs; records from
stdlib loggers (protean, uvicorn, sqlalchemy) are rendered by the same
structlog formatter so every line has one shape.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

import structlog

LEVEL_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Libraries that log at INFO on every request or query
QUIET_LOGGERS = ("protean", "sqlalchemy.engine", "asyncio", "uvicorn.access")

LOG_FILE_BYTES = 10 * 1024 * 1024


def _environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def log_level() -> str:
    return os.getenv("LOG_LEVEL", LEVEL_BY_ENV.get(_environment(), "INFO"))


def _shared_processors(service: str) -> list:
    def add_service(_, __, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service,
    ]


def _renderer():
    if _environment() in ("production", "staging"):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _handlers(formatter: logging.Formatter, level: str) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers = [console]

    log_dir = os.getenv("LOG_DIR")
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        for filename, file_level in (("fulfillment.log", level), ("fulfillment_error.log", logging.ERROR)):
            handler = logging.handlers.RotatingFileHandler(
                filename=path / filename,
                maxBytes=LOG_FILE_BYTES,
                backupCount=5,
                encoding="utf-8",
            )
            handler.setLevel(file_level)
            handlers.append(handler)

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(service: str = "fulfillment-core") -> None:
    """Route structlog and stdlib logging through one formatter.

    Logs go to stdout. When ``LOG_DIR`` is set, a rotating file and a
    separate error file are written there as well.
    """
    level = log_level()
    shared = _shared_processors(service)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(),
        ],
    )

    root_logger = logging.getLogger()
    root_logger.handlers = _handlers(formatter, level)
    root_logger.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(**kwargs) -> None:
    """Attach key/value pairs to every log line until ``clear_request_context()``."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
