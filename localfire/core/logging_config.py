"""
Logging infrastructure for LocalFire.

Provides structured logging with JSON formatting and redaction of
credentials that pass through the fake auth facade.
"""

import logging
import logging.handlers
import json
import sys
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Context variable for the name of the test (or scenario) driving the store
scenario_id: ContextVar[Optional[str]] = ContextVar('scenario_id', default=None)


class SensitiveDataFilter(logging.Filter):
    """Filter to redact credentials from log messages."""

    PATTERNS = [
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)[^\s,"\')]+', re.IGNORECASE), r'\1***REDACTED***'),
        (re.compile(r'(id_?token["\']?\s*[:=]\s*["\']?)[^\s,"\')]+', re.IGNORECASE), r'\1***REDACTED***'),
        (re.compile(r'(api_?key["\']?\s*[:=]\s*["\']?)[^\s,"\')]+', re.IGNORECASE), r'\1***REDACTED***'),
        (re.compile(r'(Bearer\s+)\S+', re.IGNORECASE), r'\1***REDACTED***'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact sensitive data from log record."""
        if isinstance(record.msg, str):
            for pattern, replacement in self.PATTERNS:
                record.msg = pattern.sub(replacement, record.msg)
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }

        if scenario := scenario_id.get():
            log_data["scenario"] = scenario

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    def __init__(self):
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Configure LocalFire logging infrastructure.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ("json" or "text")
        log_file: Optional file path for log output
        rotation_size: Size limit for log rotation (e.g., "10MB")
        rotation_count: Number of rotated log files to keep
        module_levels: Optional dict of module-specific log levels
                      e.g., {"localfire.core.operation_log": "DEBUG"}
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    if format_type == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = TextFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        max_bytes = _parse_size(rotation_size)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=rotation_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(SensitiveDataFilter())
        root_logger.addHandler(file_handler)

        root_logger.info(f"Logging to file: {log_file} (rotation: {rotation_size}, count: {rotation_count})")

    if module_levels:
        for module_name, module_level in module_levels.items():
            module_logger = logging.getLogger(module_name)
            module_logger.setLevel(getattr(logging, module_level.upper()))
            root_logger.info(f"Module '{module_name}' log level set to {module_level}")

    root_logger.info(f"Logging configured: level={level}, format={format_type}")


def _parse_size(size_str: str) -> int:
    """
    Parse size string to bytes.

    Args:
        size_str: Size string (e.g., "10MB", "1GB")

    Returns:
        Size in bytes
    """
    size_str = size_str.upper().strip()

    # Longer suffixes first so 'B' does not shadow 'MB'
    multipliers = [
        ('GB', 1024 ** 3),
        ('MB', 1024 ** 2),
        ('KB', 1024),
        ('B', 1),
    ]

    for suffix, multiplier in multipliers:
        if size_str.endswith(suffix):
            number = size_str[:-len(suffix)].strip()
            return int(float(number) * multiplier)

    return int(size_str)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def set_scenario_id(name: str) -> None:
    """Tag log lines emitted in the current context with a scenario name."""
    scenario_id.set(name)


def clear_scenario_id() -> None:
    """Clear the scenario name from the current context."""
    scenario_id.set(None)


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with additional context.

    Args:
        logger: Logger instance
        level: Log level
        message: Log message
        **context: Additional context to include in log
    """
    extra = {"context": context} if context else {}
    logger.log(level, message, extra=extra)
