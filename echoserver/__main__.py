# Command-line entry: serve on a port for a fixed time, then stop.

import sys
import time

from echoserver.config import Settings
from echoserver.dispatcher import Dispatcher
from echoserver.errors import BindError
from echoserver.logger import get_server_logger

USAGE = "Usage: echoserver <port> [shutdown_seconds]"


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print(USAGE)
        return 2
    settings = Settings.from_env()
    try:
        port = int(args[0])
        duration = float(args[1]) if len(args) > 1 else settings.shutdown_after
    except ValueError:
        print(f"Invalid argument: {' '.join(args)}")
        print(USAGE)
        return 2
    if duration < 0:
        print(f"Invalid shutdown_seconds: {duration}")
        print(USAGE)
        return 2

    print(f"Start server on port: {port}")
    logger = get_server_logger(f"port-{port}", log_dir=settings.log_dir, level=settings.log_level)
    server = Dispatcher(port, host=settings.host, logger=logger, poll_interval=settings.poll_interval)
    try:
        server.start()
    except BindError as e:
        print(f"[echoserver] {e}")
        return 1

    # Automatically shut down after `duration` seconds
    try:
        time.sleep(duration)
    except KeyboardInterrupt:
        print("\nStopping.")
    server.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
