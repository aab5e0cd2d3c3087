from __future__ import annotations

import time
from contextlib import contextmanager
from threading import Lock
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from serial.serialutil import SerialException

from .device import Device, open_serial_device
from .errors import BootError, Busy, NotConnected, OpenFailed
from .events import Event, EventBus
from .protocol import Connection, set_dtr, write_then_ack
from .status import Status
from .validator import SessionValidator

Opener = Callable[[str, int, Optional[float]], Device]
Pending = List[Tuple[Event, Dict[str, Any]]]


class ConnectionState:
    """The one serial connection plus the session it belongs to.

    Notes:
      - Every public operation holds `_lock` for its whole duration, so only
        one connect/write/dtr/disconnect runs at a time.
      - `lock_timeout=None` blocks until the lock is free; any other value is
        the longest wait before raising Busy. Same rule for every operation.
      - Events are published after the lock is released.
    """

    def __init__(
        self,
        validator: SessionValidator,
        events: EventBus,
        baud_rate: int = 57600,
        open_timeout: Optional[float] = 0.5,
        settle_delay: float = 0.2,
        lock_timeout: Optional[float] = None,
        opener: Optional[Opener] = None,
        logger=None,
    ):
        self.validator = validator
        self.events = events
        self.baud_rate = int(baud_rate)
        self.open_timeout = open_timeout
        self.settle_delay = float(settle_delay)
        self.lock_timeout = lock_timeout
        self.opener: Opener = opener or open_serial_device
        self.logger = logger

        self._lock = Lock()
        self._connection: Optional[Connection] = None
        self._session_port: Optional[str] = None

    # ---------- locking ----------
    @contextmanager
    def _exclusive(self) -> Iterator[Pending]:
        if self.lock_timeout is None:
            acquired = self._lock.acquire()
        else:
            acquired = self._lock.acquire(timeout=max(0.0, float(self.lock_timeout)))
        if not acquired:
            raise Busy()

        pending: Pending = []
        try:
            yield pending
        finally:
            self._lock.release()
            for event, payload in pending:
                self.events.notify(event, payload)

    # ---------- connect / disconnect ----------
    def connect(self, port_name: str) -> Status:
        with self._exclusive() as pending:
            return self._connect_locked(str(port_name), pending)

    def _connect_locked(self, port_name: str, pending: Pending) -> Status:
        conn = self._connection
        if conn is not None and conn.port_name == port_name:
            return Status.ALREADY_CONNECTED

        if self.logger:
            self.logger.info("Opening %s @ %s", port_name, self.baud_rate)
        try:
            device = self.opener(port_name, self.baud_rate, self.open_timeout)
        except (SerialException, OSError, ValueError) as e:
            if self.logger:
                self.logger.warning("Could not open port '%s': %s", port_name, e)
            raise OpenFailed(f"Couldn't open serial port: {e}") from e

        new = Connection(device=device, port_name=port_name, baud_rate=self.baud_rate)
        try:
            set_dtr(new, True, self.logger)
        except BootError:
            self._close(new)
            raise

        old = self._connection
        self._session_port = port_name
        self._connection = new
        if old is not None:
            self._close(old)

        # no readiness signal from the device: wait out the reboot
        time.sleep(self.settle_delay)

        if self.logger:
            self.logger.info("New connection established on %s", port_name)
        pending.append((Event.CONNECTED, {"port_name": port_name}))
        return Status.CONNECTED

    def _reconnect_locked(self, port_name: str, pending: Pending) -> Status:
        stale = self._connection
        self._connection = None
        if stale is not None:
            self._close(stale)
            pending.append((Event.DISCONNECTED, {"port_name": stale.port_name}))
        return self._connect_locked(port_name, pending)

    def disconnect(self) -> Status:
        with self._exclusive() as pending:
            conn = self._connection
            if conn is None:
                return Status.NOTHING_TO_DO
            self._connection = None
            self._close(conn)
            if self.logger:
                self.logger.info("Connection to %s dropped", conn.port_name)
            pending.append((Event.DISCONNECTED, {"port_name": conn.port_name}))
            return Status.DISCONNECTED

    def _close(self, conn: Connection) -> None:
        try:
            conn.device.close()
        except (SerialException, OSError) as e:
            if self.logger:
                self.logger.warning("Error closing %s: %s", conn.port_name, e)

    # ---------- I/O ----------
    def write(self, content: str) -> str:
        with self._exclusive() as pending:
            self.validator.validate(
                self._connection,
                self._session_port,
                lambda port: self._reconnect_locked(port, pending),
            )
            conn = self._connection
            if conn is None:
                raise NotConnected()
            return write_then_ack(conn, content, self.logger)

    def dtr(self, level: bool) -> str:
        with self._exclusive():
            conn = self._connection
            if conn is None:
                raise NotConnected()
            return set_dtr(conn, bool(level), self.logger)

    # ---------- queries ----------
    def get_current_connection(self) -> str:
        with self._exclusive():
            conn = self._connection
            if conn is None:
                raise NotConnected()
            return conn.port_name

    def snapshot(self) -> Dict[str, Any]:
        with self._exclusive():
            conn = self._connection
            return {
                "connected": conn is not None,
                "port": conn.port_name if conn else None,
                "session_port": self._session_port,
                "baud": self.baud_rate,
            }
