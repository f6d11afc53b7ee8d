"""Error types for caption-overlay.

Every error raised by the package outside of the FFmpeg process layer
derives from ``OverlayError`` and carries a category, so the CLI can decide
how to report it. The overlay core itself never raises for empty input; it
only produces fewer commands.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from caption_overlay.logging import get_logger

logger = get_logger(__name__)


class ErrorCategory(str, Enum):
    """Categories of errors for handling decisions."""

    VALIDATION = "validation"  # Bad request fields
    CONFIGURATION = "configuration"  # Bad config file or settings
    RESOURCE = "resource"  # Missing input file, font, or binary
    RENDER = "render"  # FFmpeg failed to produce the output
    INTERNAL = "internal"  # Bug in code


class OverlayError(Exception):
    """Base exception for caption-overlay errors.

    Attributes:
        message: Human-readable error message
        category: Error category for handling
        context: Additional context information
        recoverable: Whether retrying the same request could succeed
    """

    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        context: dict | None = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message


class ValidationError(OverlayError):
    """Request field rejected before it reaches the overlay core.

    Examples: non-positive font size, a color that is not a color token.
    """

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message, context, recoverable=False)


class ConfigurationError(OverlayError):
    """Overlay configuration could not be loaded or is invalid."""

    category = ErrorCategory.CONFIGURATION

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message, context, recoverable=False)


class ResourceError(OverlayError):
    """Input video/audio file or FFmpeg binary not available."""

    category = ErrorCategory.RESOURCE

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message, context, recoverable=False)


class RenderError(OverlayError):
    """FFmpeg ran but did not produce the overlaid video.

    Timeouts are marked recoverable; everything else is not.
    """

    category = ErrorCategory.RENDER

    def __init__(
        self,
        message: str,
        context: dict | None = None,
        recoverable: bool = False,
    ):
        super().__init__(message, context, recoverable=recoverable)


class ErrorContext:
    """Context manager that logs a failing operation and runs a cleanup hook.

    The exception is never suppressed.
    """

    def __init__(
        self,
        operation: str,
        cleanup: Callable[[], None] | None = None,
        context: dict | None = None,
    ):
        """Initialize error context.

        Args:
            operation: Name of the operation being performed
            cleanup: Optional function called when the block raises,
                e.g. removing a partially written output file
            context: Additional context to include in the log record
        """
        self.operation = operation
        self.cleanup = cleanup
        self.context = context or {}
        self.error: Exception | None = None

    def __enter__(self) -> "ErrorContext":
        logger.debug(f"Starting operation: {self.operation}")
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> bool:
        if exc_val is None:
            logger.debug(f"Completed operation: {self.operation}")
            return False

        self.error = exc_val
        logger.error(
            f"Error in {self.operation}: {exc_val}",
            extra={
                "operation": self.operation,
                "error_type": type(exc_val).__name__,
                **self.context,
            },
        )

        if self.cleanup:
            try:
                self.cleanup()
            except OSError as cleanup_error:
                logger.error(f"Cleanup failed for {self.operation}: {cleanup_error}")

        return False


def format_error_for_display(error: Exception) -> str:
    """Format an error message for the console.

    Args:
        error: Error to format

    Returns:
        ``[category] message (k=v, ...)`` for package errors,
        ``[error] Type: message`` otherwise
    """
    if isinstance(error, OverlayError):
        category = error.category.value
        if error.context:
            context_str = ", ".join(f"{k}={v}" for k, v in error.context.items())
            return f"[{category}] {error.message} ({context_str})"
        return f"[{category}] {error.message}"

    return f"[error] {type(error).__name__}: {error}"
