from __future__ import annotations

from collections import Counter
from threading import Lock
from typing import Iterable, List, Tuple

from .catalog import PortDescriptor, normalize_port


class Inventory:
    """The last published list of attached ports.

    The list is stored as a tuple and swapped in one assignment, so a reader
    always sees a single poll cycle, never a mix of two.
    """

    def __init__(self, ports: Iterable[PortDescriptor] = ()):
        self._lock = Lock()
        self._ports: Tuple[PortDescriptor, ...] = tuple(ports)

    def snapshot(self) -> List[PortDescriptor]:
        with self._lock:
            return list(self._ports)

    def replace(self, ports: Iterable[PortDescriptor]) -> bool:
        """Publish `ports`; returns False when the set of ports is unchanged.

        Name and description are both compared, so a same-count swap counts
        as a change. Reordering alone does not.
        """
        new = tuple(ports)
        with self._lock:
            if Counter(new) == Counter(self._ports):
                return False
            self._ports = new
            return True

    def contains(self, port_name: str) -> bool:
        want = normalize_port(port_name)
        if not want:
            return False
        with self._lock:
            ports = self._ports
        return any(normalize_port(p.port_name) == want for p in ports)
