from .dispatcher import Dispatcher
from .errors import (
    AcceptError,
    BindError,
    ConnectionIOError,
    EchoServerError,
    ServerStateError,
    ShutdownSignal,
)
from .handler import ECHO_PREFIX, GREETING, ConnectionHandler

__version__ = "0.1.0"

__all__ = [
    "Dispatcher", "ConnectionHandler", "GREETING", "ECHO_PREFIX",
    "EchoServerError", "BindError", "AcceptError", "ShutdownSignal",
    "ConnectionIOError", "ServerStateError",
]
