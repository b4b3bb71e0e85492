"""Logging utilities for spawn index runs.

Provides a filter that tags every log record with the pipeline currently
running, and a helper that applies the default text logging configuration.
"""

import contextvars
import logging
import logging.config

ctx_pipeline: contextvars.ContextVar[str] = contextvars.ContextVar("pipeline", default="-")


class PipelineFilter(logging.Filter):
    """Adds the running pipeline name to log records as ``record.pipeline``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.pipeline = ctx_pipeline.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a simple text format.

    Args:
        level: Root log level name (e.g., "DEBUG", "INFO")
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"pipeline": {"()": PipelineFilter}},
            "formatters": {
                "text": {
                    "format": "%(asctime)s %(levelname)s [%(pipeline)s] %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "text",
                    "filters": ["pipeline"],
                }
            },
            "root": {"level": level.upper(), "handlers": ["console"]},
        }
    )
