import os


def _ms(name: str, default: str) -> float:
    return float(os.getenv(name, default)) / 1000.0


class Config:
    # Serial
    BAUD_RATE = int(os.getenv("BAUD_RATE", "57600"))
    OPEN_TIMEOUT = _ms("OPEN_TIMEOUT_MS", "500")
    SETTLE_DELAY = _ms("SETTLE_DELAY_MS", "200")

    # unset: callers wait for the connection lock; set: give up with Busy
    LOCK_TIMEOUT = _ms("LOCK_TIMEOUT_MS", "0") if os.getenv("LOCK_TIMEOUT_MS") else None

    # Device watcher
    POLL_INTERVAL = _ms("POLL_INTERVAL_MS", "200")
    START_WATCHER = os.getenv("START_WATCHER", "1") == "1"

    # Runtime
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    HOST = os.getenv("HOST", "127.0.0.1")
    PORT = int(os.getenv("PORT", "5000"))
