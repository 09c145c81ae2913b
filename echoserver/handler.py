# Per-connection session: greeting, then echo every non-empty line until
# the client sends a blank line or hangs up.

import logging
import socket
from typing import Optional

from echoserver.errors import ConnectionIOError

GREETING = "Echo Server 1.0"
ECHO_PREFIX = "Echo: "


class ConnectionHandler:
    """
    Owns one accepted connection for its whole life.
    run() is called exactly once, on its own thread, and always ends
    with the connection closed.
    """
    def __init__(self, conn: socket.socket, address=None, logger: Optional[logging.Logger] = None,
                 encoding: str = "utf-8"):
        self.conn = conn
        self.address = address
        self.logger = logger or logging.getLogger("echoserver.handler")
        self.encoding = encoding
        self._rfile = None

    def run(self):
        self.logger.info(f"Received a connection from {self.address}")
        try:
            self._rfile = self.conn.makefile("rb")
            self._write_line(GREETING.encode(self.encoding))
            line = self._read_line()
            while line:
                self.logger.info(f"Received: {line.decode(self.encoding, errors='replace')}")
                self._write_line(ECHO_PREFIX.encode(self.encoding) + line)
                line = self._read_line()
        except ConnectionIOError as e:
            self.logger.warning(str(e))
        finally:
            self._teardown()

    def _read_line(self) -> Optional[bytes]:
        # None on end-of-stream, b"" on a blank line; echoed back byte for byte
        try:
            raw = self._rfile.readline()
        except OSError as e:
            raise ConnectionIOError(self.address, f"read failed: {e}") from e
        if not raw:
            return None
        return raw.rstrip(b"\r\n")

    def _write_line(self, data: bytes):
        try:
            self.conn.sendall(data + b"\n")
        except OSError as e:
            raise ConnectionIOError(self.address, f"write failed: {e}") from e

    def _teardown(self):
        if self._rfile is not None:
            try:
                self._rfile.close()
            except OSError:
                pass
            self._rfile = None
        try:
            self.conn.shutdown(socket.SHUT_RDWR)
        except OSError:
            # peer already gone
            pass
        self.conn.close()
        self.logger.info(f"Connection closed {self.address}")
