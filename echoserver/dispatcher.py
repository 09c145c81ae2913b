# Listening socket + accept loop. One thread accepts; every accepted
# connection gets its own ConnectionHandler thread. There is no pool and
# no connection limit, so a flood of clients means a flood of threads.

import errno
import logging
import os
import socket
import threading
from typing import Optional, Tuple

from echoserver.errors import AcceptError, BindError, ServerStateError, ShutdownSignal
from echoserver.handler import ConnectionHandler

# accept() errors meaning the listening socket itself is unusable
_FATAL_ACCEPT_ERRNOS = {errno.EBADF, errno.EINVAL, errno.ENOTSOCK}


class Dispatcher:
    def __init__(self, port: int, host: str = "0.0.0.0", logger: Optional[logging.Logger] = None,
                 poll_interval: float = 0.5):
        self.port = port
        self.host = host
        self.logger = logger or logging.getLogger("echoserver.dispatcher")
        self.poll_interval = poll_interval
        self._running = False
        self._sock: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._used = False
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        sock = self._sock
        if sock is None:
            return None
        try:
            return sock.getsockname()[:2]
        except OSError:
            return None

    def start(self):
        """
        Bind and listen, then run the accept loop on a background thread.
        Raises BindError if the port cannot be used; the dispatcher then
        stays stopped. An instance serves once: after stop() a new one is
        needed.
        """
        if not self.poll_interval > 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval!r}")
        with self._lock:
            if self._running:
                raise ServerStateError(f"dispatcher on port {self.port} is already running")
            if self._used:
                raise ServerStateError(f"dispatcher on port {self.port} was stopped; create a new one")
            sock = self._bind()
            self._used = True
            self._sock = sock
            self._running = True
        self.logger.info(f"Listening on {self.host}:{self.port}")
        self._thread = threading.Thread(
            target=self._accept_loop, args=(sock,), name=f"echo-accept-{self.port}", daemon=True
        )
        self._thread.start()

    def stop(self):
        with self._lock:
            if not self._running:
                return
            self._running = False
            sock, self._sock = self._sock, None
            self._close_listener(sock)
        self.logger.info(f"Stopped listening on {self.host}:{self.port}")
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout=self.poll_interval * 2)

    def _bind(self) -> socket.socket:
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 1 <= self.port <= 65535:
            raise BindError(self.port, "port must be an integer in 1-65535")
        sock = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            if os.name == "posix":
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(socket.SOMAXCONN)
            sock.settimeout(self.poll_interval)
        except OSError as e:
            if sock is not None:
                sock.close()
            raise BindError(self.port, str(e)) from e
        return sock

    def _accept(self, sock: socket.socket):
        try:
            return sock.accept()
        except socket.timeout:
            return None
        except OSError as e:
            if not self._running:
                raise ShutdownSignal(str(e)) from e
            raise AcceptError(str(e)) from e

    def _accept_loop(self, sock: socket.socket):
        while self._running:
            try:
                accepted = self._accept(sock)
            except ShutdownSignal:
                break
            except AcceptError as e:
                cause = e.__cause__
                if getattr(cause, "errno", None) in _FATAL_ACCEPT_ERRNOS:
                    self.logger.error(f"Listening socket on port {self.port} failed: {e}")
                    self.stop()
                    break
                self.logger.warning(f"Accept failed on port {self.port}: {e}")
                continue
            if accepted is None:
                continue
            conn, addr = accepted
            self._dispatch(conn, addr)
            self.logger.debug("Listening for a connection")

    def _dispatch(self, conn: socket.socket, addr):
        handler = ConnectionHandler(conn, addr, logger=self.logger)
        try:
            threading.Thread(target=handler.run, name=f"echo-conn-{addr[0]}:{addr[1]}").start()
        except RuntimeError as e:
            # out of threads
            self.logger.error(f"Cannot start handler for {addr}: {e}")
            conn.close()

    @staticmethod
    def _close_listener(sock: Optional[socket.socket]):
        if sock is None:
            return
        try:
            # wakes a blocked accept() on Linux
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()
