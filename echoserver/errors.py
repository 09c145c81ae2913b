class EchoServerError(Exception):
    """Base class for echo server errors."""


class BindError(EchoServerError):
    def __init__(self, port, reason: str = ""):
        self.port = port
        msg = f"cannot listen on port {port}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class AcceptError(EchoServerError):
    """Transient failure while accepting; the accept loop keeps going."""


class ShutdownSignal(EchoServerError):
    """The listening socket was closed by stop() under a pending accept."""


class ConnectionIOError(EchoServerError):
    def __init__(self, address, reason: str = ""):
        self.address = address
        super().__init__(f"I/O error on connection {address}: {reason}")


class ServerStateError(EchoServerError):
    """start() on a dispatcher that is running or was already stopped."""
