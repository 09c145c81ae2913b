import threading
import time
import uuid
from typing import Any, Dict, List, Optional

from echoserver.config import Settings
from echoserver.dispatcher import Dispatcher
from echoserver.logger import get_server_logger, release_server_logger


class ServerContext:
    def __init__(self, server_id: str, dispatcher: Dispatcher):
        self.server_id = server_id
        self.dispatcher = dispatcher
        self.started_at = time.time()


class ServerManager:
    """
    Keeps the dispatchers started through the control API, keyed by id.
    API endpoints run on a threadpool, so `servers` is only touched under
    `_lock`.
    """
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self.servers: Dict[str, ServerContext] = {}
        self._lock = threading.Lock()

    def start_server(self, port: int, host: Optional[str] = None) -> str:
        server_id = str(uuid.uuid4())
        logger = get_server_logger(server_id, log_dir=self.settings.log_dir, level=self.settings.log_level)
        dispatcher = Dispatcher(
            port, host=host or self.settings.host, logger=logger, poll_interval=self.settings.poll_interval
        )
        try:
            dispatcher.start()
        except Exception:
            # BindError goes to the caller; nothing is registered
            release_server_logger(server_id)
            raise
        with self._lock:
            self.servers[server_id] = ServerContext(server_id, dispatcher)
        logger.info(f"Started server {server_id} on port {port}")
        return server_id

    def _get(self, server_id: str) -> Optional[ServerContext]:
        with self._lock:
            return self.servers.get(server_id)

    def _snapshot(self) -> List[ServerContext]:
        with self._lock:
            return list(self.servers.values())

    def stop_server(self, server_id: str) -> bool:
        ctx = self._get(server_id)
        if not ctx:
            return False
        ctx.dispatcher.stop()
        return True

    def stop_all(self) -> List[str]:
        stopped = []
        for ctx in self._snapshot():
            if ctx.dispatcher.running:
                ctx.dispatcher.stop()
                stopped.append(ctx.server_id)
        return stopped

    def remove(self, server_id: str) -> bool:
        with self._lock:
            ctx = self.servers.pop(server_id, None)
        if not ctx:
            return False
        ctx.dispatcher.stop()
        release_server_logger(server_id)
        return True

    def status(self) -> Dict[str, Dict[str, Any]]:
        out = {}
        for ctx in self._snapshot():
            d = ctx.dispatcher
            out[ctx.server_id] = {
                "port": d.port, "host": d.host, "running": d.running, "started_at": ctx.started_at
            }
        return out
