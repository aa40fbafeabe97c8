"""Error taxonomy. Each ConverterError knows the HTTP status it maps to."""
from typing import Any, Optional


class ConverterError(Exception):
    """Base class for errors that are reported to the client as JSON."""

    status_code = 500
    reason = "error"

    def __init__(self, message: str, *, reason: Optional[str] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if reason:
            self.reason = reason
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"error": self.message, "reason": self.reason}
        body.update(self.extra)
        return body


class ValidationError(ConverterError):
    """Bad request shape: missing file/field, unknown extension or target."""

    status_code = 400
    reason = "invalid_request"


class LimitExceeded(ConverterError):
    """Per-category size or count limit violated."""

    status_code = 413
    reason = "file_too_large"


class UnsupportedConversion(ConverterError):
    """No strategy covers the (source, target) pair."""

    status_code = 400
    reason = "unsupported_conversion"

    def __init__(self, source: str, target: str):
        super().__init__(f"Unsupported conversion: {source or '?'} to {target or '?'}")
        self.source = source
        self.target = target


class ToolInvocationFailure(ConverterError):
    """A single strategy failed: non-zero exit, timeout, missing binary or missing output.

    Pipelines catch this and move on to the next strategy, or turn it into ConversionFailed.
    """

    reason = "tool_failed"

    def __init__(self, tool: str, message: str):
        super().__init__(f"{tool}: {message}")
        self.tool = tool


class ConversionFailed(ConverterError):
    status_code = 500
    reason = "conversion_failed"


class NoFilesConverted(ConverterError):
    """Every file of a batch failed."""

    status_code = 400
    reason = "no_files_converted"

    def __init__(self, details: list[str]):
        super().__init__("No files could be converted", details=details)
