from __future__ import annotations

from dataclasses import dataclass

from serial.serialutil import SerialException

from .device import Device
from .errors import BootError, ReadError, WriteError

NEWLINE = 0x0A
SENTINELS = ("ERROR", "nok")


@dataclass
class Connection:
    device: Device
    port_name: str
    baud_rate: int


def read_line(connection: Connection, logger=None) -> str:
    """Read one newline-framed response.

    Bytes are pulled one at a time so nothing belonging to the next frame is
    consumed. A device sentinel comes back as ReadError(<sentinel>).
    """
    buf = bytearray()
    dev = connection.device
    while True:
        try:
            b = dev.read(1)
        except (SerialException, OSError) as e:
            if logger:
                logger.warning("Reading error: %s", e)
            raise ReadError(str(e)) from e
        if not b:
            raise ReadError(f"Timed out waiting for response from {connection.port_name}")
        if b[0] == NEWLINE:
            break
        buf.extend(b)

    try:
        output = buf.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ReadError(f"Response is not valid UTF-8: {buf.hex()}") from e

    if output in SENTINELS:
        if logger:
            logger.info("Device reported failure: %r", output)
        raise ReadError(output)

    if logger:
        logger.info("RX %r", output)
    return output


def write_then_ack(connection: Connection, payload: str, logger=None) -> str:
    data = payload.encode("utf-8")
    dev = connection.device
    try:
        written = dev.write(data)
        dev.flush()
    except (SerialException, OSError) as e:
        raise WriteError(str(e)) from e

    # a short write is not retried: resending mid-frame corrupts the exchange
    if written != len(data):
        raise WriteError.short_write(written, len(data))

    if logger:
        logger.info("TX %r", payload.replace("\n", ""))
    return read_line(connection, logger)


def set_dtr(connection: Connection, level: bool, logger=None) -> str:
    try:
        connection.device.set_dtr(level)
    except (SerialException, OSError, ValueError) as e:
        raise BootError(f"Ran into issue sending DTR signal {e}") from e
    if logger:
        logger.info("Wrote DTR signal to level %s", level)
    return "DTR signal successfully sent"
