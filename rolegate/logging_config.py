"""Logging setup for rolegate.

Output format and level come from :mod:`rolegate.config` (``RG_LOG_FORMAT``
and ``RG_LOG_LEVEL``) unless a :class:`~rolegate.config.Settings` instance is
passed in.  Only the ``rolegate`` logger is configured; the host
application's root logger is left alone.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from pythonjsonlogger.json import JsonFormatter

from rolegate.config import Settings, settings

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class StructuredJsonFormatter(JsonFormatter):
    """One JSON object per log line.

    Fields passed through ``extra=`` (validation counts, purge flag,
    ``session_id``, audit metadata) become top-level keys.  An attached
    exception is emitted as a ``traceback`` list instead of free text.
    """

    def __init__(self) -> None:
        super().__init__(fmt=JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")

    def add_fields(
        self,
        log_data: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_data, record, message_dict)
        log_data.pop("exc_info", None)
        if record.exc_info and record.exc_info[1] is not None:
            log_data["traceback"] = traceback.format_exception(*record.exc_info)


def setup_logging(config: Settings | None = None) -> logging.Logger:
    """Attach a single stream handler to the ``rolegate`` logger."""
    if config is None:
        config = settings
    level = getattr(logging, config.log_level)

    logger = logging.getLogger("rolegate")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)
    if config.log_format == "json":
        handler.setFormatter(StructuredJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
