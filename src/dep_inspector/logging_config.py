"""Structured logging configuration: structlog + stdlib logging."""

import logging
import logging.config
from typing import Any, Optional

import structlog

from dep_inspector.config import AnalyzerSettings


def setup_logging(settings: AnalyzerSettings, *, tui: bool = False) -> None:
    """Configure structlog and stdlib logging from *settings*.

    In TUI mode records go to ``settings.log_file`` when set and are dropped
    otherwise, so nothing is written over the terminal UI.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=not tui and settings.log_file is None)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {"default": _handler_config(settings.log_file, tui)},
            "root": {
                "handlers": ["default"],
                "level": settings.log_level,
            },
            "loggers": {
                "dep_inspector": {"level": settings.log_level},
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
            },
        }
    )


def _handler_config(log_file: Optional[str], tui: bool) -> dict[str, Any]:
    if log_file:
        return {
            "class": "logging.FileHandler",
            "filename": log_file,
            "formatter": "structlog",
        }
    if tui:
        return {"class": "logging.NullHandler"}
    return {
        "class": "logging.StreamHandler",
        "stream": "ext://sys.stderr",
        "formatter": "structlog",
    }
