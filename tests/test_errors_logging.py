"""Tests for error handling and logging modules."""

import json
import logging
from unittest.mock import Mock

import pytest

from caption_overlay.errors import (
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    OverlayError,
    RenderError,
    ResourceError,
    ValidationError,
    format_error_for_display,
)
from caption_overlay.logging import (
    LogConfig,
    LogContext,
    LogLevel,
    OverlayLogger,
    StructuredFormatter,
    configure_logging,
    enable_file_logging,
    get_logger,
    log_operation_complete,
    log_operation_failed,
    log_operation_start,
    set_verbosity,
)


def _record(msg="Test message", level=logging.INFO):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    configure_logging(LogConfig())


class TestErrorCategory:
    """Tests for ErrorCategory enum."""

    def test_categories(self):
        """Test error category values."""
        assert ErrorCategory.VALIDATION.value == "validation"
        assert ErrorCategory.CONFIGURATION.value == "configuration"
        assert ErrorCategory.RESOURCE.value == "resource"
        assert ErrorCategory.RENDER.value == "render"
        assert ErrorCategory.INTERNAL.value == "internal"


class TestOverlayError:
    """Tests for OverlayError base class."""

    def test_basic_error(self):
        """Test basic error creation."""
        error = OverlayError("Test error")

        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.context == {}
        assert error.recoverable is False
        assert error.category == ErrorCategory.INTERNAL

    def test_error_with_context(self):
        """Test error with context."""
        error = OverlayError("Test error", context={"key": "value"})

        assert "context: {'key': 'value'}" in str(error)


class TestSpecificErrors:
    """Tests for the categorized errors."""

    def test_validation_error(self):
        """Test validation error."""
        error = ValidationError("Bad font size", context={"fields": "font_size"})

        assert error.category == ErrorCategory.VALIDATION
        assert error.recoverable is False

    def test_configuration_error(self):
        """Test configuration error."""
        assert ConfigurationError("Bad config").category == ErrorCategory.CONFIGURATION

    def test_resource_error(self):
        """Test resource error."""
        assert ResourceError("Missing video").category == ErrorCategory.RESOURCE

    def test_render_error(self):
        """Test render error recoverability follows the flag."""
        assert RenderError("FFmpeg failed").recoverable is False
        assert RenderError("FFmpeg timed out", recoverable=True).recoverable is True
        assert RenderError("x").category == ErrorCategory.RENDER

    def test_all_are_overlay_errors(self):
        """Test every category can be caught as OverlayError."""
        for error_type in (ValidationError, ConfigurationError, ResourceError, RenderError):
            assert issubclass(error_type, OverlayError)


class TestErrorContext:
    """Tests for ErrorContext context manager."""

    def test_success_path(self):
        """Test successful operation."""
        cleanup = Mock()

        with ErrorContext("test_operation", cleanup=cleanup) as ctx:
            pass

        assert ctx.error is None
        cleanup.assert_not_called()

    def test_error_path(self):
        """Test the error is recorded and propagated."""
        with pytest.raises(ValueError):
            with ErrorContext("test_operation") as ctx:
                raise ValueError("Test error")

        assert isinstance(ctx.error, ValueError)

    def test_cleanup_called(self):
        """Test cleanup runs when the block raises."""
        cleanup = Mock()

        with pytest.raises(RenderError):
            with ErrorContext("test_operation", cleanup=cleanup):
                raise RenderError("FFmpeg failed")

        cleanup.assert_called_once()

    def test_cleanup_failure_does_not_mask_error(self):
        """Test a failing cleanup leaves the original error in place."""
        cleanup = Mock(side_effect=OSError("busy"))

        with pytest.raises(RenderError):
            with ErrorContext("test_operation", cleanup=cleanup):
                raise RenderError("FFmpeg failed")


class TestFormatErrorForDisplay:
    """Tests for format_error_for_display function."""

    def test_format_overlay_error(self):
        """Test formatting a categorized error."""
        error = ResourceError("Video file not found", context={"video": "in.mp4"})

        assert format_error_for_display(error) == "[resource] Video file not found (video=in.mp4)"

    def test_format_without_context(self):
        """Test formatting without context."""
        assert format_error_for_display(ValidationError("Bad")) == "[validation] Bad"

    def test_format_generic_error(self):
        """Test formatting a non-package error."""
        assert format_error_for_display(ValueError("Generic")) == "[error] ValueError: Generic"


class TestLogLevel:
    """Tests for LogLevel enum."""

    def test_levels(self):
        """Test mapping to stdlib levels."""
        assert LogLevel.QUIET.to_logging_level() == logging.ERROR
        assert LogLevel.NORMAL.to_logging_level() == logging.WARNING
        assert LogLevel.VERBOSE.to_logging_level() == logging.INFO
        assert LogLevel.DEBUG.to_logging_level() == logging.DEBUG


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_text_format(self):
        """Test text formatting."""
        formatter = StructuredFormatter(
            json_format=False,
            include_timestamp=False,
            include_context=False,
            color=False,
        )

        formatted = formatter.format(_record())

        assert "INFO" in formatted
        assert "Test message" in formatted

    def test_json_format(self):
        """Test JSON formatting."""
        formatter = StructuredFormatter(json_format=True, include_timestamp=False)
        record = _record()
        record.commands = 12

        parsed = json.loads(formatter.format(record))

        assert parsed["level"] == "info"
        assert parsed["message"] == "Test message"
        assert parsed["context"] == {"commands": 12}

    def test_json_unserializable_context(self):
        """Test context values that are not JSON are stringified."""
        formatter = StructuredFormatter(json_format=True, include_timestamp=False)
        record = _record()
        record.path = object()

        parsed = json.loads(formatter.format(record))

        assert isinstance(parsed["context"]["path"], str)

    def test_context_in_text(self):
        """Test context inclusion in text format."""
        formatter = StructuredFormatter(include_timestamp=False, color=False)
        record = _record()
        record.frame_width = 1080

        assert "frame_width=1080" in formatter.format(record)


class TestLoggerSetup:
    """Tests for configure_logging and friends."""

    def test_get_logger(self):
        """Test loggers carry bound context."""
        logger = get_logger("caption_overlay.test")

        assert isinstance(logger, OverlayLogger)
        assert logger.name == "caption_overlay.test"

    def test_set_verbosity(self):
        """Test verbosity sets the package logger level."""
        set_verbosity(LogLevel.DEBUG)

        assert logging.getLogger("caption_overlay").level == logging.DEBUG

    def test_with_context(self, caplog):
        """Test bound context appears on records."""
        set_verbosity(LogLevel.DEBUG)
        logger = get_logger("caption_overlay.test_ctx").with_context(request_id="abc")
        logging.getLogger("caption_overlay").addHandler(caplog.handler)

        logger.info("Rendering")

        assert caplog.records[-1].request_id == "abc"

    def test_enable_file_logging(self, tmp_path):
        """Test records are written to the log file."""
        log_file = tmp_path / "logs" / "overlay.log"
        enable_file_logging(log_file)

        get_logger("caption_overlay.test_file").error("Something failed")
        for handler in logging.getLogger("caption_overlay").handlers:
            handler.flush()

        assert "Something failed" in log_file.read_text()


class TestLogContext:
    """Tests for LogContext."""

    def test_log_context(self):
        """Test attributes are stamped on records only inside the block."""
        with LogContext(request_id="abc123"):
            inside = logging.getLogRecordFactory()("n", logging.INFO, "", 0, "m", (), None)
        outside = logging.getLogRecordFactory()("n", logging.INFO, "", 0, "m", (), None)

        assert inside.request_id == "abc123"
        assert not hasattr(outside, "request_id")


class TestLogOperationHelpers:
    """Tests for the operation logging helpers."""

    def test_log_operation_start(self):
        """Test start message."""
        logger = Mock()
        log_operation_start(logger, "overlay render", video="in.mp4")

        logger.info.assert_called_once_with("Starting: overlay render", extra={"video": "in.mp4"})

    def test_log_operation_complete(self):
        """Test duration is rounded into the context."""
        logger = Mock()
        log_operation_complete(logger, "overlay render", duration=1.23456)

        logger.info.assert_called_once_with(
            "Completed: overlay render", extra={"duration_seconds": 1.23}
        )

    def test_log_operation_failed(self):
        """Test failure carries the error type and message."""
        logger = Mock()
        log_operation_failed(logger, "overlay render", RenderError("boom"))

        _, kwargs = logger.error.call_args
        assert kwargs["extra"]["error_type"] == "RenderError"
        assert kwargs["extra"]["error_message"] == "boom"
