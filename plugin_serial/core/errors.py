# plugin_serial/core/errors.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    SERIAL = "Serial"
    ENUMERATION = "Enumeration"
    OPEN_FAILED = "OpenFailed"
    NOT_CONNECTED = "NotConnected"
    BUSY = "Busy"
    WRITE = "Write"
    READ = "Read"
    BOOT = "Boot"
    PROTOCOL = "Protocol"
    VALIDATION = "Validation"


class SerialPluginError(Exception):
    """Base error for the serial session.

    Every failure is returned to the caller; nothing here is fatal to the
    process. `to_dict()` is what the HTTP layer sends back.
    """

    error_type: ErrorType = ErrorType.SERIAL

    def __init__(self, message: str, error_type: Optional[ErrorType] = None):
        super().__init__(message)
        self.message = str(message)
        if error_type is not None:
            self.error_type = error_type

    def to_dict(self) -> Dict[str, Any]:
        return {"error_type": self.error_type.value, "message": self.message}


class EnumerationError(SerialPluginError):
    """The OS port query failed."""

    error_type = ErrorType.ENUMERATION


class ConnectionError(SerialPluginError):
    error_type = ErrorType.NOT_CONNECTED


class OpenFailed(ConnectionError):
    error_type = ErrorType.OPEN_FAILED


class NotConnected(ConnectionError):
    error_type = ErrorType.NOT_CONNECTED

    def __init__(self, message: str = "No connection found"):
        super().__init__(message)


class Busy(ConnectionError):
    error_type = ErrorType.BUSY

    def __init__(self, message: str = "Could not lock serial connection, try again"):
        super().__init__(message)


class ProtocolError(SerialPluginError):
    error_type = ErrorType.PROTOCOL


class WriteError(ProtocolError):
    error_type = ErrorType.WRITE

    def __init__(self, message: str, written: Optional[int] = None, expected: Optional[int] = None):
        super().__init__(message)
        self.written = written
        self.expected = expected

    @classmethod
    def short_write(cls, written: int, expected: int) -> "WriteError":
        return cls(
            f"Incomplete write only wrote {written} bytes of {expected}",
            written=written,
            expected=expected,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        if self.written is not None:
            out["written"] = self.written
            out["expected"] = self.expected
        return out


class ReadError(ProtocolError):
    """I/O failure while reading, or a sentinel token sent by the device.

    For sentinels `message` is the raw token ("ERROR" / "nok").
    """

    error_type = ErrorType.READ


class BootError(ProtocolError):
    """DTR could not be driven; the device reset handshake failed."""

    error_type = ErrorType.BOOT


class ValidationError(SerialPluginError):
    error_type = ErrorType.VALIDATION
