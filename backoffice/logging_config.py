"""Structured logging configuration.

Console output is human-readable. ``logs/app.log`` and ``logs/error.log``
hold JSON records; the per-attempt fields the requester attaches
(operation, transport, path, status, outcome) are grouped under
``upstream``. The T-Soft token travels in every REST1 form and shows up in
debug request dumps, so configured secrets are masked in all handlers.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from pythonjsonlogger import jsonlogger

from backoffice.config import settings

SERVICE_NAME = "tsoft-backoffice"

# Structured fields set via ``extra`` by the requester and enrichment code
UPSTREAM_FIELDS = ("operation", "transport", "path", "status", "outcome", "capability")

MASK = "***"


class SecretMaskingFilter(logging.Filter):
    """Replaces configured secrets in the rendered message."""

    def __init__(self, secrets: Iterable[Optional[str]]):
        super().__init__()
        self.secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, MASK)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps source fields and groups upstream context."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['service'] = SERVICE_NAME
        log_record['source'] = f"{record.filename}:{record.lineno}"

        upstream = {
            field: log_record.pop(field)
            for field in UPSTREAM_FIELDS
            if field in log_record
        }
        if upstream:
            log_record['upstream'] = upstream


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter,
             mask: logging.Filter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(mask)
    return handler


def setup_logging(base_dir: str | Path | None = None):
    """Configure logging for the application.

    Args:
        base_dir: Optional base directory to place the logs/ folder in.
                  Falls back to settings.log_dir, then the working directory.
    """
    base = base_dir or settings.log_dir
    logs_dir = (Path(base) if base else Path.cwd()) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))
    root_logger.handlers.clear()

    mask = SecretMaskingFilter([settings.tsoft_api_token, settings.admin_api_key])
    json_formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

    root_logger.addHandler(_handler(
        logging.StreamHandler(sys.stdout),
        logging.DEBUG,
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        mask,
    ))
    root_logger.addHandler(_handler(logging.FileHandler(logs_dir / "app.log"), logging.DEBUG, json_formatter, mask))
    root_logger.addHandler(_handler(logging.FileHandler(logs_dir / "error.log"), logging.ERROR, json_formatter, mask))

    # httpx logs every request at INFO; the requester already does that
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root_logger


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that merges its context into each record's extra."""

    def process(self, msg, kwargs):
        extra = dict(self.extra)
        extra.update(kwargs.get('extra', {}))
        kwargs['extra'] = extra
        return msg, kwargs


def get_logger(name: str, **context) -> LoggerAdapter:
    """
    Get a logger bound to upstream context.

    Args:
        name: Logger name (usually __name__)
        **context: Context fields, e.g. operation='get_products'; per-call
                   ``extra`` values override them

    Returns:
        LoggerAdapter with context
    """
    return LoggerAdapter(logging.getLogger(name), context)
