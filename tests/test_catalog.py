"""Unit tests for port enumeration."""

from __future__ import annotations

import pytest

from conftest import FakeLister, plain_port, usb_port
from plugin_serial.core.catalog import PortCatalog, PortDescriptor, describe_port, normalize_port
from plugin_serial.core.errors import EnumerationError, ErrorType


class TestDescribePort:

    def test_usb_port_reports_product(self):
        assert describe_port(usb_port("/dev/ttyUSB0", "WIDGET")) == PortDescriptor("/dev/ttyUSB0", "WIDGET")

    def test_usb_port_without_product_is_empty(self):
        assert describe_port(usb_port("/dev/ttyACM0", None)).port_info == ""

    def test_non_usb_port_is_empty(self):
        assert describe_port(plain_port("/dev/ttyS0")) == PortDescriptor("/dev/ttyS0", "")


class TestPortCatalog:

    def test_enumerate_keeps_os_order(self):
        catalog = PortCatalog(FakeLister([usb_port("COM7", "WIDGET"), plain_port("COM1")]))

        ports = catalog.enumerate()

        assert ports == [PortDescriptor("COM7", "WIDGET"), PortDescriptor("COM1", "")]

    def test_enumerate_empty(self):
        assert PortCatalog(FakeLister([])).enumerate() == []

    def test_lister_failure_raises_enumeration_error(self):
        catalog = PortCatalog(FakeLister(OSError("udev unavailable")))

        with pytest.raises(EnumerationError) as exc:
            catalog.enumerate()

        assert exc.value.error_type is ErrorType.ENUMERATION
        assert "udev unavailable" in exc.value.message
        assert isinstance(exc.value.__cause__, OSError)

    def test_descriptor_to_dict(self):
        assert PortDescriptor("COM3", "WIDGET").to_dict() == {"port_name": "COM3", "port_info": "WIDGET"}


class TestNormalizePort:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("com4", "COM4"),
            ("\\\\.\\COM12", "COM12"),
            ("  /dev/ttyUSB0 ", "/DEV/TTYUSB0"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_port(raw) == expected
