from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    CONNECTED = "New connection established"
    ALREADY_CONNECTED = "Already connected"
    DISCONNECTED = "Any connections dropped"
    NOTHING_TO_DO = "No connection to drop"
    SESSION_VALID = "Old session is good"
