import logging
import socket
import threading

from echoserver.handler import ConnectionHandler

LOGGER = "tests.handler"


def _serve(server_sock):
    h = ConnectionHandler(server_sock, ("peer", 1), logger=logging.getLogger(LOGGER))
    t = threading.Thread(target=h.run, daemon=True)
    t.start()
    return t


def _pair():
    server_sock, client = socket.socketpair()
    client.settimeout(5)
    return server_sock, client, client.makefile("rb")


def test_greeting_is_first_line():
    server_sock, client, rfile = _pair()
    t = _serve(server_sock)
    try:
        assert rfile.readline() == b"Echo Server 1.0\n"
    finally:
        rfile.close()
        client.close()
        t.join(5)


def test_echoes_lines_until_blank_line():
    server_sock, client, rfile = _pair()
    t = _serve(server_sock)
    rfile.readline()
    client.sendall(b"hello\n")
    assert rfile.readline() == b"Echo: hello\n"
    client.sendall(b"second line\n")
    assert rfile.readline() == b"Echo: second line\n"
    client.sendall(b"\n")
    assert rfile.readline() == b""
    t.join(5)
    assert not t.is_alive()
    assert server_sock.fileno() == -1
    client.close()


def test_crlf_terminated_lines():
    server_sock, client, rfile = _pair()
    t = _serve(server_sock)
    rfile.readline()
    client.sendall(b"hi there\r\n")
    assert rfile.readline() == b"Echo: hi there\n"
    client.sendall(b"\r\n")
    assert rfile.readline() == b""
    t.join(5)
    client.close()


def test_several_lines_in_one_write_are_echoed_in_order():
    server_sock, client, rfile = _pair()
    t = _serve(server_sock)
    rfile.readline()
    client.sendall(b"one\ntwo\nthree\n\n")
    assert rfile.readline() == b"Echo: one\n"
    assert rfile.readline() == b"Echo: two\n"
    assert rfile.readline() == b"Echo: three\n"
    assert rfile.readline() == b""
    t.join(5)
    client.close()


def test_peer_close_without_data_releases_connection():
    server_sock, client, rfile = _pair()
    t = _serve(server_sock)
    rfile.readline()
    rfile.close()
    client.close()
    t.join(5)
    assert not t.is_alive()
    assert server_sock.fileno() == -1


def test_unterminated_last_line_is_echoed_before_close():
    server_sock, client, rfile = _pair()
    t = _serve(server_sock)
    rfile.readline()
    client.sendall(b"tail")
    client.shutdown(socket.SHUT_WR)
    assert rfile.readline() == b"Echo: tail\n"
    assert rfile.readline() == b""
    t.join(5)
    client.close()


def test_received_lines_are_logged(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER)
    server_sock, client, rfile = _pair()
    t = _serve(server_sock)
    rfile.readline()
    client.sendall(b"ping\n")
    rfile.readline()
    client.sendall(b"\n")
    t.join(5)
    client.close()
    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("Received a connection") for m in messages)
    assert "Received: ping" in messages
    assert any(m.startswith("Connection closed") for m in messages)


def test_write_failure_is_logged_and_connection_closed(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER)
    server_sock, client = socket.socketpair()
    client.close()
    ConnectionHandler(server_sock, ("gone", 2), logger=logging.getLogger(LOGGER)).run()
    assert server_sock.fileno() == -1
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert warnings and "write failed" in warnings[0].getMessage()


class _BrokenReader:
    def readline(self):
        raise ConnectionResetError("reset by peer")

    def close(self):
        pass


class _FakeConn:
    def __init__(self):
        self.sent = []
        self.closed = False

    def makefile(self, mode):
        return _BrokenReader()

    def sendall(self, data):
        self.sent.append(data)

    def shutdown(self, how):
        raise OSError("not connected")

    def close(self):
        self.closed = True


def test_read_failure_is_contained(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER)
    conn = _FakeConn()
    ConnectionHandler(conn, ("fake", 3), logger=logging.getLogger(LOGGER)).run()
    assert conn.sent == [b"Echo Server 1.0\n"]
    assert conn.closed
    assert any("read failed" in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING)


def test_non_utf8_bytes_are_echoed_unchanged():
    server_sock, client, rfile = _pair()
    t = _serve(server_sock)
    rfile.readline()
    client.sendall(b"caf\xe9 \xff\n")
    assert rfile.readline() == b"Echo: caf\xe9 \xff\n"
    client.sendall(b"\n")
    assert rfile.readline() == b""
    t.join(5)
    client.close()
