"""
Structured logging configuration for dep-mole.

Emits machine-readable JSON log lines on stderr so that stdout stays
reserved for the dependency report.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
}


class StderrHandler(logging.StreamHandler):
    """Stream handler that writes to whatever sys.stderr is at emit time."""

    def emit(self, record: logging.LogRecord) -> None:
        self.stream = sys.stderr
        super().emit(record)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
        }
        message = record.getMessage()
        if message:
            log_entry["message"] = message

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class EventLogger:
    """Structured logger for scan events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"dep_mole.{name}")
        self._setup_logger()
        self.scan_context: Dict[str, Any] = {}

    def _setup_logger(self) -> None:
        """Setup logger with structured formatting."""
        if not self.logger.handlers:
            handler = StderrHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False
            self.logger.setLevel(logging.WARNING)

    def set_scan_context(
        self,
        scan_id: Optional[str] = None,
        project_root: Optional[str] = None,
    ) -> None:
        """Set scan context for logging."""
        self.scan_context = {}
        if scan_id:
            self.scan_context["scan_id"] = scan_id
        if project_root:
            self.scan_context["project_root"] = project_root

    def clear_scan_context(self) -> None:
        """Clear scan context."""
        self.scan_context.clear()

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.scan_context, **kwargs}
        self.logger.log(level, "", extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        """Log info level event."""
        self._log(logging.INFO, event_type, **kwargs)

    def warning(self, event_type: str, **kwargs) -> None:
        """Log warning level event."""
        self._log(logging.WARNING, event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        """Log debug level event."""
        self._log(logging.DEBUG, event_type, **kwargs)


# Global logger instances
_scanner_logger = EventLogger("scanner")
_analyzer_logger = EventLogger("analyzer")
_registry_logger = EventLogger("registry")

_ALL_LOGGERS = (_scanner_logger, _analyzer_logger, _registry_logger)


def get_scanner_logger() -> EventLogger:
    """Get scanner operations logger."""
    return _scanner_logger


def get_analyzer_logger() -> EventLogger:
    """Get usage analyzer logger."""
    return _analyzer_logger


def get_registry_logger() -> EventLogger:
    """Get registry operations logger."""
    return _registry_logger


def log_registry_check(
    package_name: str,
    exists: bool,
    latest_version: Optional[str] = None,
    response_time_ms: Optional[int] = None,
) -> None:
    """Log registry check result."""
    log_data: Dict[str, Any] = {
        "package_name": package_name,
        "package_exists": exists,
    }
    if latest_version is not None:
        log_data["latest_version"] = latest_version
    if response_time_ms is not None:
        log_data["response_time_ms"] = response_time_ms

    if not exists:
        _registry_logger.warning("package_not_found_in_registry", **log_data)
    else:
        _registry_logger.debug("registry_check_completed", **log_data)


def set_scan_context(
    scan_id: Optional[str] = None,
    project_root: Optional[str] = None,
) -> None:
    """Set global scan context for all loggers."""
    for logger in _ALL_LOGGERS:
        logger.set_scan_context(scan_id, project_root)


def clear_scan_context() -> None:
    """Clear global scan context."""
    for logger in _ALL_LOGGERS:
        logger.clear_scan_context()


def configure_logging(log_level: str = "WARNING") -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    for logger in _ALL_LOGGERS:
        logger.logger.setLevel(level)
