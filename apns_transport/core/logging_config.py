"""
Structured JSON Logging Configuration

Provides centralized logging configuration with:
- JSON formatted output for machine parsing
- Batch ID tracking via contextvars (one ID per dispatch call)
- Optional file rotation
- Configurable log levels via environment
"""
import logging
import logging.handlers
import os
import contextvars
import re
from datetime import datetime, timezone
from typing import Optional
from pythonjsonlogger import jsonlogger

from apns_transport.core.config import settings

# Context variable for batch ID propagation
batch_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'batch_id', default=None
)


class BatchIdFilter(logging.Filter):
    """
    Logging filter that adds batch_id to all log records.

    Every per-token log line emitted while a dispatch call is running
    carries the same batch_id, so a whole batch can be correlated.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.batch_id = batch_id_var.get() or "-"
        return True


class SanitizingFilter(logging.Filter):
    """
    Filter that sanitizes log messages to prevent log injection attacks.

    Notification titles and APNs reason strings are external input, so
    line breaks are flattened before they reach a handler.
    """

    DANGEROUS_PATTERNS = [
        (r'\r\n', ' '),  # CRLF injection
        (r'\n', ' '),    # Newline injection
        (r'\r', ' '),    # Carriage return injection
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in self.DANGEROUS_PATTERNS:
                record.msg = re.sub(pattern, replacement, record.msg)

        if record.args and isinstance(record.args, tuple):
            sanitized_args = []
            for arg in record.args:
                if isinstance(arg, str):
                    sanitized = arg
                    for pattern, replacement in self.DANGEROUS_PATTERNS:
                        sanitized = re.sub(pattern, replacement, sanitized)
                    sanitized_args.append(sanitized)
                else:
                    sanitized_args.append(arg)
            record.args = tuple(sanitized_args)

        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that adds standard fields to all log entries.

    Output format:
    {
        "timestamp": "2025-11-23T10:30:00.000Z",
        "level": "INFO",
        "message": "APNS dispatch complete",
        "module": "apns_provider",
        "batch_id": "uuid-here",
        "logger": "apns_transport.push.apns_provider",
        ...extra fields...
    }
    """

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get('timestamp'):
            log_record['timestamp'] = datetime.now(timezone.utc).isoformat()

        log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['logger'] = record.name
        log_record['batch_id'] = getattr(record, 'batch_id', '-')

        if record.funcName:
            log_record['function'] = record.funcName

        if 'message' not in log_record:
            log_record['message'] = record.getMessage()


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging with JSON format and optional rotation.

    Args:
        log_level: Override log level (default from settings.LOG_LEVEL)
        log_dir: Directory for rotating log files (default settings.LOG_DIR,
            console only when neither is set)

    Returns:
        Root logger configured for the transport
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    directory = log_dir or settings.LOG_DIR

    json_formatter = CustomJsonFormatter(
        '%(timestamp)s %(level)s %(name)s %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(json_formatter)
    console_handler.addFilter(BatchIdFilter())
    console_handler.addFilter(SanitizingFilter())
    root_logger.addHandler(console_handler)

    if directory:
        os.makedirs(directory, exist_ok=True)

        # Max 100MB per file
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(directory, 'apns.log'),
            maxBytes=100 * 1024 * 1024,
            backupCount=7,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(json_formatter)
        file_handler.addFilter(BatchIdFilter())
        file_handler.addFilter(SanitizingFilter())
        root_logger.addHandler(file_handler)

    # Suppress noisy third-party loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('hpack').setLevel(logging.WARNING)

    return root_logger


def set_batch_id(batch_id: Optional[str]) -> contextvars.Token:
    """
    Set the batch ID for the current context.

    Args:
        batch_id: Identifier for the current dispatch call

    Returns:
        Token that can be used to reset the context
    """
    return batch_id_var.set(batch_id)


def get_batch_id() -> Optional[str]:
    """Get the current batch ID from context, or None if not set."""
    return batch_id_var.get()


def clear_batch_id(token: contextvars.Token) -> None:
    """Reset the batch ID context using the token from set_batch_id."""
    batch_id_var.reset(token)


def mask_token(device_token: str) -> str:
    """Shorten a device token for log output."""
    if len(device_token) <= 20:
        return device_token
    return device_token[:20] + "..."
