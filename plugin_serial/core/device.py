# plugin_serial/core/device.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import serial


class Device(ABC):
    """Byte-stream handle to one open serial device.

    ConnectionState only talks to this interface, so tests can swap in a
    scripted fake instead of real hardware.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    @abstractmethod
    def read(self, n: int = 1) -> bytes: ...

    @abstractmethod
    def set_dtr(self, level: bool) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


def _windows_port(port: str) -> str:
    # Windows: COM10+ needs \\.\COM10
    if isinstance(port, str) and port.upper().startswith("COM"):
        try:
            n = int(port[3:])
            if n >= 10 and not port.startswith("\\\\.\\"):
                return "\\\\.\\" + port
        except ValueError:
            pass
    return port


class SerialDevice(Device):
    """pyserial-backed Device.

    `timeout` applies per read/write call. There is no deadline for a whole
    response line: a device that keeps trickling bytes without a newline
    keeps the reader blocked.
    """

    def __init__(self, port: str, baudrate: int = 57600, timeout: Optional[float] = 0.5):
        self.port = str(port)
        self.baudrate = int(baudrate)
        self.timeout = timeout
        self._ser: Optional[serial.Serial] = None

    @property
    def name(self) -> str:
        return self.port

    @property
    def is_open(self) -> bool:
        return bool(self._ser and self._ser.is_open)

    def open(self) -> None:
        if self._ser and self._ser.is_open:
            return
        # plain device names open as serial.Serial; loop://, socket://, rfc2217:// also work
        self._ser = serial.serial_for_url(
            _windows_port(self.port),
            self.baudrate,
            timeout=self.timeout,
            write_timeout=self.timeout,
        )

    def _require(self) -> serial.Serial:
        if not (self._ser and self._ser.is_open):
            raise serial.SerialException("Serial not open")
        return self._ser

    def write(self, data: bytes) -> int:
        written = self._require().write(data)
        return len(data) if written is None else int(written)

    def flush(self) -> None:
        self._require().flush()

    def read(self, n: int = 1) -> bytes:
        return self._require().read(n)

    def set_dtr(self, level: bool) -> None:
        self._require().dtr = bool(level)

    def close(self) -> None:
        if self._ser:
            try:
                if self._ser.is_open:
                    self._ser.close()
            finally:
                self._ser = None


def open_serial_device(port_name: str, baud_rate: int, timeout: Optional[float]) -> Device:
    """Default opener used by ConnectionState. Raises SerialException/OSError."""
    dev = SerialDevice(port_name, baud_rate, timeout)
    dev.open()
    return dev
