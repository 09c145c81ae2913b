import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def get_server_logger(name: str, log_dir: Optional[str] = None, level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(f"echoserver.{name}")
    if logger.handlers:
        return logger
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    fmt = logging.Formatter(FORMAT)
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(fmt)
    logger.addHandler(ch)
    if log_dir:
        logs_dir = os.path.join(log_dir, name, "logs")
        os.makedirs(logs_dir, exist_ok=True)
        fh = RotatingFileHandler(os.path.join(logs_dir, "server.log"), maxBytes=5_000_000, backupCount=3)
        fh.setFormatter(fmt)
        logger.addHandler(fh)
    return logger


def release_server_logger(name: str):
    """Close and detach the handlers added by get_server_logger."""
    logger = logging.getLogger(f"echoserver.{name}")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
