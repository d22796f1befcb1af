"""Logging for the recipe generation pipeline.

Log lines go to stderr so they never mix with recipes printed on stdout.
Two environment variables control the output:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text renders through rich for terminals, json emits one object
  per line for log collectors (default: text)

Pipeline code attaches the run it belongs to with
`extra={"run_id": ..., "stage": ...}`; both formats show it.
"""

import json
import logging
import os
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


CONTEXT_FIELDS = ("run_id", "stage")


def run_context(record: logging.LogRecord) -> dict[str, str]:
    """Return the pipeline context fields present on a record."""
    return {field: str(getattr(record, field)) for field in CONTEXT_FIELDS if getattr(record, field, None)}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with run context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **run_context(record),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class RunContextFormatter(logging.Formatter):
    """Prefixes messages with `[run_id stage]` for the rich handler.

    Time, level and colors are rendered by RichHandler itself.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = run_context(record)
        if not context:
            return message
        return f"[{' '.join(context.values())}] {message}"


def build_handler(log_type: str) -> logging.Handler:
    if log_type == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        return handler

    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(RunContextFormatter())
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching a handler on first use.

    Args:
        name: Logger name, typically the package name.

    Returns:
        Configured logger instance.
    """
    logger_instance = logging.getLogger(name)
    if logger_instance.handlers:
        return logger_instance

    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    logger_instance.setLevel(log_level)
    logger_instance.addHandler(build_handler(os.getenv("LOG_TYPE", "text").lower()))

    return logger_instance


logger = get_logger("recipe_generator")

# Transport and imaging libraries only report problems
logging.getLogger("aiohttp").setLevel(logging.WARNING)
logging.getLogger("PIL").setLevel(logging.WARNING)
