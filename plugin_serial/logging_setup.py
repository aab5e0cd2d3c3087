import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

LOGGER_NAME = "plugin_serial"


def setup_logging(log_dir: Optional[str] = "logs", filename: str = "serial.log", level: str = "INFO") -> logging.Logger:
    """Configure the `plugin_serial` logger once per process.

    Every module logs under this name (protocol TX/RX, connect/disconnect,
    watcher changes). An empty `log_dir` means console only.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # The Flask app factory may run more than once per process
    if logger.handlers:
        return logger

    fmt = logging.Formatter("%(asctime)s %(levelname)s [%(threadName)s] %(message)s")

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(Path(log_dir) / filename, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    logger.addHandler(sh)

    # werkzeug logs every polled GET /api/events otherwise
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    return logger
