"""
Logging Management Module.

Builds the application logger used across the pipeline. Log calls pass
structured dict messages, e.g.::

    logger.info({"message": "Fetched repositories", "count": 12})

Features:
- JSON lines output for machine consumption
- Compact human-readable output in development mode
- Rotating log file alongside console output
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional


class StructuredFormatter(logging.Formatter):
    """Render dict log messages as JSON, or as ``message key=value`` pairs."""

    def __init__(self, development: bool = False):
        super().__init__()
        self.development = development

    def _payload(self, record: logging.LogRecord) -> Dict[str, Any]:
        if isinstance(record.msg, dict):
            payload = dict(record.msg)
        else:
            payload = {"message": record.getMessage()}
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return payload

    def format(self, record: logging.LogRecord) -> str:
        payload = self._payload(record)
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)

        if self.development:
            message = payload.pop("message", "")
            extras = " ".join(f"{key}={value}" for key, value in payload.items())
            line = f"[{timestamp:%H:%M:%S}] {record.levelname:8s} | {message}"
            return f"{line} {extras}" if extras else line

        entry = {
            "timestamp": timestamp.isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        entry.update(payload)
        return json.dumps(entry, default=str)


class LogManager:
    """
    Owns the configuration of a named application logger.

    Attributes:
        logger (logging.Logger): The configured logger instance.
    """

    def __init__(
        self,
        app_name: str,
        log_dir: Optional[str] = "logs",
        development: bool = False,
        level: int = logging.INFO,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ):
        """Configure console and file handlers for ``app_name``.

        Args:
            app_name (str): Logger name, also used for the log file name.
            log_dir (Optional[str]): Directory for the rotating log file. No file
                handler is attached when empty.
            development (bool): Use the human-readable console format.
            level (int): Logging level.
            max_bytes (int): Size at which the log file is rotated.
            backup_count (int): Number of rotated files to keep.
        """
        self.logger = logging.getLogger(app_name)
        self.logger.setLevel(level)
        self.logger.propagate = False

        # Handlers are attached once per logger name
        if self.logger.handlers:
            return

        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(StructuredFormatter(development=development))
        self.logger.addHandler(console)

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, f"{app_name}.log"),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(file_handler)
