from __future__ import annotations

import threading
from typing import Optional

from .catalog import PortCatalog
from .errors import EnumerationError
from .events import Event, EventBus
from .inventory import Inventory


class DeviceWatcher:
    """Background port poller.

    Re-enumerates every `interval` seconds (counted from the end of the
    previous cycle) and republishes the inventory only when it changed.
    It writes the inventory and nothing else, so it never contends with the
    connection lock.
    """

    def __init__(
        self,
        catalog: PortCatalog,
        inventory: Inventory,
        events: EventBus,
        interval: float = 0.2,
        logger=None,
    ):
        self.catalog = catalog
        self.inventory = inventory
        self.events = events
        self.interval = float(interval)
        self.logger = logger

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="device-watcher", daemon=True)
        self._thread.start()
        if self.logger:
            self.logger.info("Device watcher started (every %.3fs)", self.interval)

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None

    def poll_once(self) -> bool:
        """Run one cycle. Returns True when a new inventory was published."""
        try:
            ports = self.catalog.enumerate()
        except EnumerationError as e:
            if self.logger:
                self.logger.warning("%s", e)
            return False

        if not self.inventory.replace(ports):
            return False

        if self.logger:
            self.logger.info("Device list updated: %s", [p.port_name for p in ports])
        self.events.notify(Event.DEVICE_LIST_UPDATED, {"devices": [p.to_dict() for p in ports]})
        return True

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as e:
                if self.logger:
                    self.logger.exception("Device watcher error: %s", e)
            self._stop.wait(self.interval)
        if self.logger:
            self.logger.info("Device watcher stopped")
