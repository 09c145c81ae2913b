#!/usr/bin/env python3
import socket
import sys


def client(host, port):
    with socket.create_connection((host, port)) as s:
        rfile = s.makefile("r", encoding="utf-8", newline="\n")
        print(rfile.readline().rstrip("\n"))
        # a blank line ends the session
        while True:
            try:
                message = input("> ")
            except EOFError:
                break
            s.sendall((message + "\n").encode())
            if not message:
                break
            reply = rfile.readline()
            if not reply:
                print("[client] server closed the connection")
                break
            print(reply.rstrip("\n"))


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: echo_client.py <host> <port>")
        raise SystemExit(2)
    client(sys.argv[1], int(sys.argv[2]))
