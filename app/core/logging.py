"""
Logging configuration.

Text format for development, JSON lines for log aggregation.
"""

import datetime
import json
import logging
import sys
from typing import Any, Optional

from app.core.config import Settings, settings


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Structured context passed via ``extra={"extra_fields": {...}}``
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


def setup_logging(config: Optional[Settings] = None) -> logging.Logger:
    """Configure the root logger once for the process."""
    cfg = config or settings
    log_level = getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO)

    if cfg.LOG_FORMAT == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # SQL echo is controlled by DEBUG on the engine, not by the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return root_logger
