"""Pytest configuration and shared fakes for the serial session."""

from __future__ import annotations

import threading
import time

import pytest
from serial.serialutil import SerialException
from serial.tools.list_ports_common import ListPortInfo

from plugin_serial.core.catalog import PortCatalog
from plugin_serial.core.controller import SerialPlugin
from plugin_serial.core.device import Device


def usb_port(device: str, product: str | None = "WIDGET") -> ListPortInfo:
    info = ListPortInfo(device, skip_link_detection=True)
    info.vid = 0x2341
    info.pid = 0x0043
    info.product = product
    return info


def plain_port(device: str) -> ListPortInfo:
    return ListPortInfo(device, skip_link_detection=True)


class FakeDevice(Device):
    """Scripted device: records writes, replays queued response bytes."""

    def __init__(self, name: str, responses: bytes = b"", accept: int | None = None):
        self._name = name
        self.rx = bytearray(responses)
        self.tx = bytearray()
        self.accept = accept
        self.fail_write = False
        self.fail_dtr = False
        self.dtr_levels: list[bool] = []
        self.reads = 0
        self.flushes = 0
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_open(self) -> bool:
        return not self.closed

    def feed(self, data: bytes) -> None:
        self.rx.extend(data)

    def write(self, data: bytes) -> int:
        if self.fail_write:
            raise SerialException("write failed")
        n = len(data) if self.accept is None else min(self.accept, len(data))
        self.tx.extend(data[:n])
        return n

    def flush(self) -> None:
        self.flushes += 1

    def read(self, n: int = 1) -> bytes:
        self.reads += 1
        out = bytes(self.rx[:n])
        del self.rx[:n]
        return out

    def set_dtr(self, level: bool) -> None:
        if self.fail_dtr:
            raise SerialException("dtr failed")
        self.dtr_levels.append(level)

    def close(self) -> None:
        self.closed = True


class FakeOpener:
    """Stands in for open_serial_device; every open yields a new FakeDevice."""

    def __init__(self, responses: bytes = b"", delay: float = 0.0):
        self.responses = responses
        self.delay = delay
        self.fail_ports: set[str] = set()
        self.fail_dtr_ports: set[str] = set()
        self.opened: list[FakeDevice] = []
        self.calls: list[tuple] = []
        self._lock = threading.Lock()

    def __call__(self, port_name, baud_rate, timeout):
        with self._lock:
            self.calls.append((port_name, baud_rate, timeout))
        if self.delay:
            time.sleep(self.delay)
        if port_name in self.fail_ports:
            raise SerialException(f"could not open port {port_name}")
        dev = FakeDevice(port_name, self.responses)
        dev.fail_dtr = port_name in self.fail_dtr_ports
        with self._lock:
            self.opened.append(dev)
        return dev

    @property
    def last(self) -> FakeDevice:
        return self.opened[-1]


class FakeLister:
    """Returns the next scripted port list per call; repeats the last one.

    An Exception instance in the script is raised instead of returned.
    """

    def __init__(self, *sequence):
        self.sequence = list(sequence) or [[]]
        self.calls = 0

    def set(self, ports) -> None:
        self.sequence = [ports]
        self.calls = 0

    def __call__(self):
        idx = min(self.calls, len(self.sequence) - 1)
        self.calls += 1
        item = self.sequence[idx]
        if isinstance(item, Exception):
            raise item
        return list(item)


@pytest.fixture
def lister():
    return FakeLister([usb_port("/dev/ttyUSB0"), usb_port("/dev/ttyUSB1", "GADGET")])


@pytest.fixture
def opener():
    return FakeOpener(responses=b"pong\n")


@pytest.fixture
def plugin(lister, opener):
    p = SerialPlugin(
        baud_rate=57600,
        open_timeout=0.5,
        settle_delay=0,
        poll_interval=0.01,
        catalog=PortCatalog(lister),
        opener=opener,
    )
    yield p
    p.stop()


@pytest.fixture
def received(plugin):
    events = []
    plugin.subscribe(lambda event, payload: events.append((event, payload)))
    return events
