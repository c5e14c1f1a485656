"""
Structured logging configuration and utilities
"""

import logging
import logging.handlers
import json
import traceback
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional
from contextlib import contextmanager

from config.app_config import get_config


_RESERVED_RECORD_FIELDS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message', 'asctime'
}


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""

        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }

        # Fields passed through `extra=`
        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_FIELDS
        }

        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging() -> logging.Logger:
    """
    Set up structured logging for the application

    Returns:
        logging.Logger: Configured root logger
    """
    config = get_config()

    if config.logging.enable_file_logging:
        log_file_path = Path(config.logging.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.logging.level))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, config.logging.level))

    if config.debug:
        # Human-readable format for development
        console_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s [%(filename)s:%(lineno)d]'
        )
    else:
        console_formatter = StructuredFormatter()

    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if config.logging.enable_file_logging:
        file_handler = logging.handlers.RotatingFileHandler(
            config.logging.log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger: Configured logger
    """
    return logging.getLogger(name)


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str, **extra_fields):
    """
    Context manager to log execution time of operations

    Args:
        logger: Logger instance
        operation: Description of the operation
        **extra_fields: Additional fields to include in log
    """
    start_time = datetime.now()

    try:
        logger.debug(f"Starting {operation}", extra={
            "operation": operation,
            "start_time": start_time.isoformat(),
            **extra_fields
        })

        yield

        duration = (datetime.now() - start_time).total_seconds()

        logger.info(f"Completed {operation}", extra={
            "operation": operation,
            "duration_seconds": duration,
            "status": "success",
            **extra_fields
        })

    except Exception as e:
        duration = (datetime.now() - start_time).total_seconds()

        logger.error(f"Failed {operation}: {str(e)}", extra={
            "operation": operation,
            "duration_seconds": duration,
            "status": "error",
            "error_type": type(e).__name__,
            "error_message": str(e),
            **extra_fields
        })

        raise


def log_conversation_event(logger: logging.Logger, event_type: str, session_id: str, **details):
    """
    Log conversation-related events

    Args:
        logger: Logger instance
        event_type: Type of event (e.g., "message_submitted", "resolved", "reset")
        session_id: Conversation session identifier
        **details: Additional event details
    """
    logger.info("Conversation event", extra={
        "event_type": "conversation_event",
        "conversation_event_type": event_type,
        "session_id": session_id,
        "timestamp": datetime.now().isoformat(),
        **details
    })


class ErrorTracker:
    """
    Centralized error tracking and reporting
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.error_counts: Dict[str, int] = {}

    def track_error(self, error: Exception, context: str = "", **extra_info):
        """
        Track and log an error with context

        Args:
            error: Exception that occurred
            context: Context where error occurred
            **extra_info: Additional error information
        """
        error_type = type(error).__name__
        error_key = f"{error_type}:{context}"

        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        self.logger.error(f"Error in {context}: {str(error)}", extra={
            "event_type": "error",
            "error_type": error_type,
            "error_message": str(error),
            "context": context,
            "error_count": self.error_counts[error_key],
            "timestamp": datetime.now().isoformat(),
            **extra_info
        }, exc_info=error)

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get summary of tracked errors

        Returns:
            Dict with error statistics
        """
        return {
            "total_errors": sum(self.error_counts.values()),
            "unique_errors": len(self.error_counts),
            "error_breakdown": dict(self.error_counts),
            "timestamp": datetime.now().isoformat()
        }


# Global instances
_logger_setup = False
_error_tracker: Optional[ErrorTracker] = None


def initialize_logging() -> ErrorTracker:
    """
    Initialize logging system and return error tracker

    Returns:
        ErrorTracker: Global error tracker instance
    """
    global _logger_setup, _error_tracker

    if not _logger_setup:
        setup_logging()
        _logger_setup = True

    if _error_tracker is None:
        _error_tracker = ErrorTracker(logging.getLogger("fabrix.errors"))

    return _error_tracker


def get_error_tracker() -> ErrorTracker:
    """
    Get the global error tracker instance

    Does not install handlers; call initialize_logging() from the application entry point.
    """
    global _error_tracker
    if _error_tracker is None:
        _error_tracker = ErrorTracker(logging.getLogger("fabrix.errors"))
    return _error_tracker
