"""
Exception hierarchy for the Tally SDK.

Every error raised by the SDK derives from TallyError, so callers can catch
the whole family at once or pick out the kind they care about:

- TallyValidationError: input rejected locally, before any XML is built
- TallyResponseError: Tally answered with an ERROR / LINEERROR
- TallyConnectionError and subclasses: the HTTP round trip failed
- TallyHTTPStatusError: Tally answered with a non-2xx status
- TallyParseError: the response was not parseable XML
"""
from __future__ import annotations
from typing import Optional


class TallyError(Exception):
    """Base class for all SDK errors."""
    pass


class TallyValidationError(TallyError, ValueError):
    """Raised when a domain object fails local validation."""
    pass


class TallyResponseError(TallyError):
    """
    Raised when Tally returns an explicit error in the response body.

    ``detail`` always holds the verbatim Tally text. ``operation`` is set when
    a service re-raises the error for a high-level call, in which case the
    message reads "Failed to <operation>: <detail>".
    """

    def __init__(self, detail: str, operation: Optional[str] = None):
        self.detail = detail
        self.operation = operation
        message = f"Failed to {operation}: {detail}" if operation else detail
        super().__init__(message)

    def for_operation(self, operation: str) -> "TallyResponseError":
        """Return a copy of this error prefixed with the failing operation."""
        return TallyResponseError(self.detail, operation=operation)


class TallyConnectionError(TallyError):
    """Raised when the connection to Tally fails (refused, unreachable)."""
    pass


class TallyTimeoutError(TallyConnectionError):
    """Raised when Tally does not answer within the configured timeout."""
    pass


class TallyNoResponseError(TallyConnectionError):
    """Raised when a request was sent but no response came back."""
    pass


class TallyHTTPStatusError(TallyError):
    """Raised when Tally answers with a non-2xx HTTP status."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"TallyPrime server error: {status_code} - {reason}".rstrip(" -"))


class TallyParseError(TallyError):
    """Raised when a Tally response cannot be parsed as XML."""
    pass
