"""
StudentHub Portal - Centralized Logging Configuration
Supports both interactive (plain text) and structured (JSON) logging
"""

import logging
import sys
import json
import traceback
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar


ROOT_LOGGER = "studenthub"

# Context variables for tracing which view issued a call
view_var: ContextVar[str] = ContextVar('view', default='')
user_email_var: ContextVar[str] = ContextVar('user_email', default='')


def get_view() -> str:
    """Get current view name from context"""
    return view_var.get() or ''


def set_view(view: str) -> None:
    """Set current view name in context"""
    view_var.set(view)


def get_user_email() -> str:
    return user_email_var.get() or ''


def set_user_email(email: str) -> None:
    user_email_var.set(email)


_RESERVED = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName', 'view', 'user_email',
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging
    One object per line, easy to grep or ship to a log aggregator
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        view = get_view()
        if view:
            log_data["view"] = view

        user_email = get_user_email()
        if user_email:
            log_data["user_email"] = user_email

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info) if record.exc_info[0] else None
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith('_'):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """
    Formatter that includes the view and user context
    Used for readable terminal output
    """

    def format(self, record: logging.LogRecord) -> str:
        record.view = get_view() or '-'
        record.user_email = get_user_email() or '-'
        return super().format(record)


class PortalLogger(logging.Logger):
    """
    Logger with convenience methods for structured logging
    """

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        """Log HTTP request details"""
        level = logging.DEBUG if 200 <= status_code < 400 else logging.WARNING
        self.log(
            level,
            f"HTTP {method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": duration_ms,
                **kwargs
            }
        )

    def log_view_event(self, view: str, event: str, **kwargs) -> None:
        """Log a view state transition or user action"""
        self.debug(
            f"View {view}: {event}",
            extra={
                "event_type": "view",
                "view_name": view,
                "view_event": event,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: str = None,
                               **kwargs) -> None:
        """Log error with full context"""
        self.error(
            f"Error in {context}: {type(error).__name__}: {str(error)}",
            exc_info=True,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_message": str(error),
                "error_context": context,
                **kwargs
            }
        )


def get_logger(name: str = ROOT_LOGGER) -> PortalLogger:
    """Return a PortalLogger under the studenthub namespace"""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    logger = logging.getLogger(name)
    if not isinstance(logger, PortalLogger):
        logger.__class__ = PortalLogger  # Ensure it's our custom class
    return logger


def setup_logging(level: str = "INFO", log_file: Optional[str] = None,
                  json_logs: bool = False, verbose: bool = False) -> PortalLogger:
    """Setup logging configuration for the portal"""

    logger = get_logger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()
    logger.propagate = False

    if json_logs:
        console_formatter: logging.Formatter = JSONFormatter()
        file_formatter: logging.Formatter = console_formatter
    else:
        detailed_format = (
            "%(asctime)s | %(levelname)-8s | "
            "[%(view)s] [%(user_email)s] | "
            "%(name)s:%(lineno)d | %(message)s"
        )
        simple_format = "%(levelname)-8s | %(message)s"
        console_formatter = ContextualFormatter(detailed_format if verbose else simple_format)
        file_formatter = ContextualFormatter(detailed_format)

    # stderr keeps log lines out of rendered tables on stdout
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=10485760,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.debug(
        "Logging initialized",
        extra={"log_level": level, "json_logging": json_logs}
    )

    return logger


__all__ = [
    'get_logger',
    'setup_logging',
    'get_view',
    'set_view',
    'get_user_email',
    'set_user_email',
    'PortalLogger',
]
