from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

import serial.tools.list_ports

from .errors import EnumerationError


@dataclass(frozen=True)
class PortDescriptor:
    port_name: str
    port_info: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def normalize_port(p: str | None) -> str:
    if not p:
        return ""
    p = str(p).strip()
    if p.lower().startswith("\\\\.\\"):
        p = p[4:]
    return p.upper()


def describe_port(info: Any) -> PortDescriptor:
    """Build a descriptor from a pyserial ListPortInfo.

    USB ports (pyserial fills `vid`) report their product string; anything
    else reports an empty description.
    """
    name = str(getattr(info, "device", "") or "")
    if getattr(info, "vid", None) is not None:
        return PortDescriptor(name, str(getattr(info, "product", None) or ""))
    return PortDescriptor(name, "")


class PortCatalog:
    """Enumerates serial ports currently attached to the machine."""

    def __init__(self, lister: Optional[Callable[[], Iterable[Any]]] = None):
        self.lister = lister or serial.tools.list_ports.comports

    def enumerate(self) -> List[PortDescriptor]:
        try:
            infos = list(self.lister())
        except Exception as e:
            raise EnumerationError(f"Error getting available ports: {e}") from e
        return [describe_port(info) for info in infos]
