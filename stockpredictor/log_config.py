"""
Logging setup for the training and backtest entry points.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

_LEVELS = {
    'CRITICAL': logging.CRITICAL,
    'ERROR': logging.ERROR,
    'WARNING': logging.WARNING,
    'INFO': logging.INFO,
    'DEBUG': logging.DEBUG,
}

_RESERVED = set(logging.LogRecord('', 0, '', 0, '', (), None).__dict__) | {'args', 'message'}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, including anything passed through ``extra=``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                payload[key] = value

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logger(
    name: str = 'stockpredictor',
    level: str = 'INFO',
    structured: bool = False,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """
    Configure a named logger with a console handler and an optional file handler.

    Args:
        name: Logger name (child loggers inherit the handlers)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Emit JSON lines instead of plain text
        log_file: Optional path that receives the same records

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    level_value = _LEVELS.get(level.upper(), logging.INFO)
    logger.setLevel(level_value)
    logger.handlers = []

    formatter: logging.Formatter
    if structured:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level_value)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
