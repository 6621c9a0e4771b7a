"""Logging for the stockkeeping domain.

Handlers live on the standard library root logger: stdout, plus rotating
``stockkeeping.log`` / ``stockkeeping_error.log`` files unless
``LOG_TO_FILE`` is off. structlog renders on top of them, JSON in
production/staging and the Rich-backed console view elsewhere.

Every handler logs through ``get_logger(__name__)``; ``tenant_context``
binds the tenant and the object being worked on for the lines emitted
inside one operation.
"""

import logging
import logging.handlers
import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

import structlog

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


@dataclass(frozen=True)
class LogSettings:
    environment: str
    level: str
    directory: Path
    to_file: bool

    @property
    def as_json(self) -> bool:
        return self.environment in ("production", "staging")

    @classmethod
    def from_env(cls) -> "LogSettings":
        environment = (
            os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development"
        ).lower()
        return cls(
            environment=environment,
            level=os.getenv("LOG_LEVEL", _LEVELS.get(environment, "INFO")).upper(),
            directory=Path(os.getenv("LOG_DIR", "logs")),
            to_file=os.getenv("LOG_TO_FILE", "true").lower() not in ("0", "false", "no"),
        )


def _rotating(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(settings: LogSettings) -> None:
    """Attach the stdout and file handlers to the root logger."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    handlers[0].setLevel(settings.level)

    if settings.to_file:
        settings.directory.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating(settings.directory / "stockkeeping.log", settings.level))
        handlers.append(_rotating(settings.directory / "stockkeeping_error.log", logging.ERROR))

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.level)
    root_logger.handlers = handlers

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def _plain_values(_, __, event_dict: dict) -> dict:
    """Render ids and enum members the way they are stored."""
    for key, value in event_dict.items():
        if isinstance(value, UUID):
            event_dict[key] = str(value)
        elif isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def setup_structlog(settings: LogSettings) -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _plain_values,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
    ]

    if settings.as_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: LogSettings | None = None) -> LogSettings:
    settings = settings or LogSettings.from_env()
    setup_stdlib_logging(settings)
    setup_structlog(settings)
    return settings


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def tenant_context(tenant_id: str, **kwargs: Any):
    """Bind the tenant (and any extra context) to log lines emitted inside the block."""
    return structlog.contextvars.bound_contextvars(tenant_id=str(tenant_id), **kwargs)
