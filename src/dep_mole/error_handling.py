"""
Error handling for dep-mole.

Defines the exception taxonomy raised by the scanning pipeline and a
centralized handler that logs handled failures in a consistent shape.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .structured_logging import StderrHandler


class DepMoleError(Exception):
    """Base class for fatal dep-mole errors (reported and exit code 1)."""


class ManifestNotFound(DepMoleError):
    """No package.json at the project root."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"No package.json found at {path}")


class ManifestParseError(DepMoleError):
    """package.json exists but cannot be read as a JSON object."""


class InvalidOptionCombination(DepMoleError):
    """Mutually exclusive CLI flags were given together."""


class AnalyzerFailure(DepMoleError):
    """The usage analyzer could not produce a result."""


class ErrorLevel(Enum):
    """Error severity levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """Error categories for better classification."""

    PARSING = "PARSING"
    ANALYZER = "ANALYZER"
    NETWORK = "NETWORK"
    FILESYSTEM = "FILESYSTEM"
    CONFIGURATION = "CONFIGURATION"
    VALIDATION = "VALIDATION"


@dataclass
class ErrorContext:
    """Structured error context information."""

    level: ErrorLevel
    category: ErrorCategory
    message: str
    module: str
    function: str
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None
    suggestions: List[str] = field(default_factory=list)


_LEVELS = {
    ErrorLevel.DEBUG: logging.DEBUG,
    ErrorLevel.INFO: logging.INFO,
    ErrorLevel.WARNING: logging.WARNING,
    ErrorLevel.ERROR: logging.ERROR,
    ErrorLevel.CRITICAL: logging.CRITICAL,
}


class ErrorHandler:
    """Centralized error handler: every handled failure is logged in one shape."""

    def __init__(
        self,
        logger_name: str = "dep_mole",
        log_level: int = logging.WARNING,
    ):
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(log_level)
        if not self.logger.handlers:
            handler = StderrHandler()
            handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            self.logger.addHandler(handler)
            self.logger.propagate = False

    def handle_error(
        self,
        level: ErrorLevel,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        exception: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ) -> ErrorContext:
        """
        Handle an error with structured logging.

        Args:
            level: Error severity level
            category: Error category
            message: Error message
            module: Module where error occurred
            function: Function where error occurred
            exception: Optional exception object
            details: Additional error details
            suggestions: Suggested fixes

        Returns:
            ErrorContext: The created error context
        """
        context = ErrorContext(
            level=level,
            category=category,
            message=message,
            module=module,
            function=function,
            details=details or {},
            exception=exception,
            suggestions=suggestions or [],
        )

        log_data: Dict[str, Any] = {
            "category": category.value,
            "module": module,
            "function": function,
            "details": context.details,
        }
        if exception:
            log_data["exception"] = type(exception).__name__
        if context.suggestions:
            log_data["suggestions"] = context.suggestions
        self.logger.log(_LEVELS[level], f"{message} | {log_data}")

        return context

    def warning(
        self,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        **kwargs,
    ) -> ErrorContext:
        """Handle warning level error."""
        return self.handle_error(
            ErrorLevel.WARNING, category, message, module, function, **kwargs
        )

    def error(
        self,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        **kwargs,
    ) -> ErrorContext:
        """Handle error level error."""
        return self.handle_error(
            ErrorLevel.ERROR, category, message, module, function, **kwargs
        )


# Global error handler instance
_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """
    Get the global error handler instance.

    Returns:
        ErrorHandler: Global error handler
    """
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def setup_error_handling(
    log_level: int = logging.WARNING,
    logger_name: str = "dep_mole",
) -> ErrorHandler:
    """
    Setup global error handling configuration.

    Returns:
        ErrorHandler: Configured error handler
    """
    global _global_error_handler
    _global_error_handler = ErrorHandler(logger_name, log_level)
    return _global_error_handler


def log_parsing_error(
    message: str,
    module: str,
    function: str,
    file_path: Optional[str] = None,
    exception: Optional[Exception] = None,
):
    """Convenience function for logging manifest parsing errors."""
    details = {}
    if file_path is not None:
        details["file_path"] = Path(file_path).name

    get_error_handler().error(
        ErrorCategory.PARSING,
        message,
        module,
        function,
        details=details,
        exception=exception,
        suggestions=[
            "Check that package.json is valid JSON",
            "Verify the file is UTF-8 encoded",
        ],
    )


def log_network_error(
    message: str,
    module: str,
    function: str,
    url: Optional[str] = None,
    status_code: Optional[int] = None,
    exception: Optional[Exception] = None,
):
    """
    Convenience function for logging registry lookup failures.

    Args:
        message: Error message
        module: Module name
        function: Function name
        url: URL that failed
        status_code: HTTP status code
        exception: Optional exception
    """
    details: Dict[str, Any] = {}
    if url is not None:
        details["url"] = url
    if status_code is not None:
        details["status_code"] = status_code

    get_error_handler().warning(
        ErrorCategory.NETWORK,
        message,
        module,
        function,
        details=details,
        exception=exception,
        suggestions=[
            "Check network connectivity",
            "Verify the registry URL is correct",
        ],
    )
