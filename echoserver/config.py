import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        value = None
    if value is None or not value > 0:
        logger.warning(f"Ignoring {name}={raw!r}, using {default}")
        return default
    return value


@dataclass
class Settings:
    """Runtime settings, read from ECHOSERVER_* environment variables."""
    host: str = "0.0.0.0"
    shutdown_after: float = 60.0
    log_dir: Optional[str] = None
    log_level: str = "INFO"
    poll_interval: float = 0.5

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            host=os.environ.get("ECHOSERVER_HOST", "").strip() or "0.0.0.0",
            shutdown_after=_env_float("ECHOSERVER_SHUTDOWN_AFTER", 60.0),
            log_dir=os.environ.get("ECHOSERVER_LOG_DIR", "").strip() or None,
            log_level=os.environ.get("ECHOSERVER_LOG_LEVEL", "").strip() or "INFO",
            poll_interval=_env_float("ECHOSERVER_POLL_INTERVAL", 0.5),
        )
