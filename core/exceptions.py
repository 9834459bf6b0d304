"""
Custom exception classes and error handling.

Every error raised by the analytics engine carries a machine-readable
error code so callers can tell kinds apart without parsing messages.
"""
from enum import Enum
from typing import Optional, Dict, Any


class ErrorKind(str, Enum):
    """Machine-readable error codes."""
    INVALID_DATE = "INVALID_DATE"
    INVALID_RANGE = "INVALID_RANGE"
    INVALID_TARGET = "INVALID_TARGET"
    INVALID_PERIOD = "INVALID_PERIOD"
    NOT_FOUND = "NOT_FOUND"


class AnalyticsError(Exception):
    """Base analytics exception with consistent structure."""

    def __init__(
        self,
        error_code: ErrorKind,
        detail: str,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(detail)
        self.error_code = error_code
        self.detail = detail
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code.value,
            "detail": self.detail,
            **({"context": self.context} if self.context else {}),
        }


class InvalidDate(AnalyticsError):
    """Date-like input could not be parsed."""

    def __init__(self, value: Any):
        super().__init__(
            error_code=ErrorKind.INVALID_DATE,
            detail=f"Invalid date: {value!r}",
            context={"value": repr(value)}
        )


class InvalidRange(AnalyticsError):
    """Range or goal window where start comes after end."""

    def __init__(self, detail: str, start: Any = None, end: Any = None):
        context = {}
        if start is not None:
            context["start"] = str(start)
        if end is not None:
            context["end"] = str(end)
        super().__init__(
            error_code=ErrorKind.INVALID_RANGE,
            detail=detail,
            context=context
        )


class InvalidTarget(AnalyticsError):
    """Goal target type and value do not agree."""

    def __init__(self, detail: str, field: Optional[str] = None):
        super().__init__(
            error_code=ErrorKind.INVALID_TARGET,
            detail=detail,
            context={"field": field} if field else None
        )


class InvalidPeriod(AnalyticsError):
    """Unknown bucketing granularity."""

    def __init__(self, period: Any):
        super().__init__(
            error_code=ErrorKind.INVALID_PERIOD,
            detail=f"Unknown period: {period!r} (expected day, week or month)",
            context={"period": repr(period)}
        )


class NotFoundError(AnalyticsError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            error_code=ErrorKind.NOT_FOUND,
            detail=f"{resource} not found: {identifier}",
            context={"resource": resource, "identifier": identifier}
        )
