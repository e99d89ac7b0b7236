"""Domain errors for the taskwire client.

Every failure a caller can observe is one of a closed set of exception types.
Each carries structured detail (field and bounds, or protocol code and text)
in ``detail`` so callers can handle it programmatically.

Protocol error codes are mapped to exception classes through a table:
- 19: CredentialError (invalid API key)
- anything else: ProtocolError

Extra codes can be registered with ``register_error_code`` without touching
the dispatcher.
"""

from __future__ import annotations

from typing import Any


class TaskwireError(Exception):
    """Base class for all taskwire errors."""

    kind = "error"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.detail: dict[str, Any] = {"kind": self.kind, **detail}

    def __copy__(self) -> TaskwireError:
        # Subclass __init__ signatures differ, so bypass them.
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone.args = self.args
        clone.detail = dict(self.detail)
        clone.__cause__ = self.__cause__
        return clone


class ProtocolError(TaskwireError):
    """The remote side answered with an error frame."""

    kind = "protocol"

    def __init__(self, code: int | float | None, text: str) -> None:
        super().__init__(f"protocol error [{code}:{text}]", code=code, text=text)
        self.code = code
        self.text = text


class CredentialError(ProtocolError):
    """The remote side rejected the API key."""

    kind = "credential"


class DecodeError(TaskwireError):
    """An inbound frame or payload could not be decoded."""

    kind = "decode"

    def __init__(self, reason: str) -> None:
        super().__init__(f"failed to decode message: {reason}", reason=reason)
        self.reason = reason


class RequestTimeoutError(TaskwireError, TimeoutError):
    """No answer arrived before the request timeout.

    ``partial`` holds the response value with ``timed_out`` set, so callers
    can inspect whatever is known about the request.
    """

    kind = "timeout"

    def __init__(self, operation: str, timeout: float, partial: Any = None) -> None:
        super().__init__(
            f"request timed out after {timeout}s [{operation}]",
            operation=operation,
            timeout=timeout,
        )
        self.operation = operation
        self.timeout = timeout
        self.partial = partial


class RequestCancelledError(TaskwireError):
    """The caller cancelled the request before an answer arrived."""

    kind = "cancelled"

    def __init__(self, operation: str) -> None:
        super().__init__(f"request cancelled [{operation}]", operation=operation)
        self.operation = operation


class ValidationError(TaskwireError, ValueError):
    """A request field failed validation. Raised before any I/O."""

    kind = "validation"

    def __init__(
        self,
        field: str,
        reason: str,
        bounds: tuple[float, float] | None = None,
    ) -> None:
        super().__init__(
            f"invalid field {field}: {reason}", field=field, reason=reason, bounds=bounds
        )
        self.field = field
        self.reason = reason
        self.bounds = bounds


class ConnectionClosedError(TaskwireError, ConnectionError):
    """The shared connection closed while the request was outstanding."""

    kind = "connection_closed"

    def __init__(self, reason: str = "connection closed") -> None:
        super().__init__(reason, reason=reason)
        self.reason = reason


# Error classifier

CREDENTIAL_ERROR_CODE = 19

_ERROR_CODES: dict[int, type[ProtocolError]] = {
    CREDENTIAL_ERROR_CODE: CredentialError,
}


def register_error_code(code: int, error_cls: type[ProtocolError]) -> None:
    """Map a protocol error code to a ProtocolError subclass."""
    _ERROR_CODES[code] = error_cls


def classify_error(code: Any, text: str) -> ProtocolError:
    """Build the domain error for a protocol error code.

    Unknown codes become a plain ProtocolError; code and text are always kept.
    """
    error_cls = ProtocolError
    if isinstance(code, int | float) and not isinstance(code, bool) and float(code).is_integer():
        error_cls = _ERROR_CODES.get(int(code), ProtocolError)
    return error_cls(code, text)
