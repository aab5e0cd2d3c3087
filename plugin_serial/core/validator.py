from __future__ import annotations

from typing import Callable, Optional

from .errors import NotConnected, SerialPluginError, ValidationError
from .inventory import Inventory
from .protocol import Connection
from .status import Status


class SessionValidator:
    """Repairs a stale session before it is used.

    Must be called with the ConnectionState lock already held: the check and
    the reconnect run in one critical section, and `reconnect` is expected to
    be the lock-free connect path.
    """

    def __init__(self, inventory: Inventory, logger=None):
        self.inventory = inventory
        self.logger = logger

    def is_usable(self, connection: Optional[Connection]) -> bool:
        if connection is None or not connection.device.is_open:
            return False
        return self.inventory.contains(connection.port_name)

    def validate(
        self,
        connection: Optional[Connection],
        session_port: Optional[str],
        reconnect: Callable[[str], Status],
    ) -> Status:
        if self.is_usable(connection):
            return Status.SESSION_VALID

        if not session_port:
            raise NotConnected("Connection no longer valid, try reconnecting!")

        if self.logger:
            self.logger.warning("Session on %s is stale, reconnecting", session_port)

        try:
            return reconnect(session_port)
        except SerialPluginError as e:
            raise ValidationError(f"Could not restore session on {session_port}: {e.message}") from e
