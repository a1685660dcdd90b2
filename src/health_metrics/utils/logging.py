# ============================================================================
# src/health_metrics/utils/logging.py
# ============================================================================
"""
Logging setup for the health metrics engine.

Log lines go to stderr so command output on stdout stays machine readable.
Extraction runs tag records with report/patient/provider fields through
LogContext; JsonFormatter emits those fields as top-level keys.
"""

import asyncio
import functools
import json
import logging
import re
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..config.logging_config import logging_settings


# Record attributes that LogContext may attach and JsonFormatter emits
CONTEXT_FIELDS = ("report_id", "patient_id", "provider", "attempt")

# HTTP client libraries that log every request at INFO
NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "openai", "httpx", "httpcore")

# Bearer tokens and provider API keys echoed back in error bodies
_SECRET_PATTERN = re.compile(r'(Bearer\s+|sk-(?:ant-)?)[A-Za-z0-9_\-]{8,}')


def redact_secrets(message: str) -> str:
    return _SECRET_PATTERN.sub(lambda m: f"{m.group(1)}***", message)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    format_json: Optional[bool] = None,
) -> None:
    """
    Configure the root logger.

    Unset arguments fall back to LoggingSettings (LOG_LEVEL, LOG_FILE,
    LOG_FORMAT_JSON).
    """
    level = level or logging_settings.LOG_LEVEL
    log_file = log_file if log_file is not None else logging_settings.LOG_FILE
    if format_json is None:
        format_json = logging_settings.LOG_FORMAT_JSON

    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # Request-level chatter only when debugging
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(log_level if log_level <= logging.DEBUG else logging.WARNING)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with extraction context fields and secrets masked."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': redact_secrets(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = redact_secrets(self.formatException(record.exc_info))

        return json.dumps(log_data, default=str)


class LogContext:
    """
    Attach extraction fields to every record created inside the block.

    Example:
        with LogContext(logger, report_id=42, provider="claude"):
            logger.info("Calling provider")
    """

    def __init__(self, logger: logging.Logger, **context):
        unknown = set(context) - set(CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported log context fields: {sorted(unknown)}")
        self.logger = logger
        self.context = context
        self.old_factory = None

    def __enter__(self):
        self.old_factory = logging.getLogRecordFactory()
        old_factory = self.old_factory
        context = self.context

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            for key, value in context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self.old_factory)


def log_performance(logger: logging.Logger, operation: str):
    """
    Log how long a sync or async callable took, and whether it raised.

    Args:
        logger: Logger instance
        operation: Operation name used in the message
    """
    def report(started: float, error: Optional[BaseException] = None):
        duration = time.perf_counter() - started
        if error is None:
            logger.info(f"{operation} completed in {duration:.3f}s")
        else:
            logger.error(f"{operation} failed after {duration:.3f}s: {redact_secrets(str(error))}")

    def decorator(func):
        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    report(started, e)
                    raise
                report(started)
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                report(started, e)
                raise
            report(started)
            return result

        return wrapper
    return decorator
