from __future__ import annotations

from typing import Any, Dict, List, Optional

from .catalog import PortCatalog, PortDescriptor
from .errors import EnumerationError
from .events import EventBus, Subscriber
from .inventory import Inventory
from .state import ConnectionState, Opener
from .status import Status
from .validator import SessionValidator
from .watcher import DeviceWatcher


class SerialPlugin:
    """Everything the host needs for one serial device session.

    Responsibilities:
      - Owns the port catalog, the published inventory and the event bus.
      - Owns ConnectionState (connect/write/dtr/disconnect).
      - Runs the DeviceWatcher once start() is called.

    IMPORTANT:
      - Host code goes through these methods; it must not touch the
        connection or the inventory directly.
      - Errors are raised as SerialPluginError subclasses.
    """

    def __init__(
        self,
        baud_rate: int = 57600,
        open_timeout: Optional[float] = 0.5,
        settle_delay: float = 0.2,
        poll_interval: float = 0.2,
        lock_timeout: Optional[float] = None,
        catalog: Optional[PortCatalog] = None,
        opener: Optional[Opener] = None,
        logger=None,
    ):
        self.logger = logger
        self.catalog = catalog or PortCatalog()
        self.events = EventBus(logger=logger)
        self.inventory = Inventory(self._initial_ports())

        self.validator = SessionValidator(self.inventory, logger=logger)
        self.state = ConnectionState(
            self.validator,
            self.events,
            baud_rate=baud_rate,
            open_timeout=open_timeout,
            settle_delay=settle_delay,
            lock_timeout=lock_timeout,
            opener=opener,
            logger=logger,
        )
        self.watcher = DeviceWatcher(
            self.catalog,
            self.inventory,
            self.events,
            interval=poll_interval,
            logger=logger,
        )

        if self.logger:
            self.logger.info(
                "Serial plugin init: baud=%s open_timeout=%s settle=%s poll=%s",
                baud_rate,
                open_timeout,
                settle_delay,
                poll_interval,
            )

    @classmethod
    def from_config(cls, config, **overrides) -> "SerialPlugin":
        kwargs: Dict[str, Any] = dict(
            baud_rate=config.BAUD_RATE,
            open_timeout=config.OPEN_TIMEOUT,
            settle_delay=config.SETTLE_DELAY,
            poll_interval=config.POLL_INTERVAL,
            lock_timeout=config.LOCK_TIMEOUT,
        )
        kwargs.update(overrides)
        return cls(**kwargs)

    def _initial_ports(self) -> List[PortDescriptor]:
        try:
            return self.catalog.enumerate()
        except EnumerationError as e:
            if self.logger:
                self.logger.warning("Could not get initial ports: %s", e)
            return []

    # ---------- lifecycle ----------
    def start(self) -> None:
        self.watcher.start()

    def stop(self) -> None:
        self.watcher.stop()
        self.state.disconnect()

    def subscribe(self, callback: Subscriber) -> Subscriber:
        return self.events.subscribe(callback)

    # ---------- operations ----------
    def list_ports(self) -> List[PortDescriptor]:
        return self.inventory.snapshot()

    def scan_ports(self) -> List[PortDescriptor]:
        """Enumerate right now, bypassing the published inventory."""
        return self.catalog.enumerate()

    def get_connection(self) -> str:
        return self.state.get_current_connection()

    def connect(self, port_name: str) -> Status:
        return self.state.connect(port_name)

    def disconnect(self) -> Status:
        return self.state.disconnect()

    def write(self, content: str) -> str:
        return self.state.write(content)

    def dtr(self, level: bool) -> str:
        return self.state.dtr(level)

    def status(self) -> Dict[str, Any]:
        snap = self.state.snapshot()
        snap["watching"] = self.watcher.is_running
        snap["ports"] = [p.to_dict() for p in self.inventory.snapshot()]
        return snap
