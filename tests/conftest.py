"""Shared fixtures: a scripted fake device listening on a local TCP port."""

from __future__ import annotations

import socket
import threading

import pytest


class FakeDevice:
    """Accepts one connection per scripted reply.

    For each connection it reads one command line, records it, sends the
    scripted bytes and then either closes or holds the connection open
    until the fixture is torn down.
    """

    def __init__(self) -> None:
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(8)
        self.host, self.port = self._sock.getsockname()
        self.commands: list[str] = []
        self._replies: list[tuple[bytes, bool]] = []
        self._release = threading.Event()
        self._stopping = False
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def reply(self, payload: str | bytes, hold: bool = False) -> None:
        """Queue the response for the next connection."""
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        self._replies.append((payload, hold))

    def _serve(self) -> None:
        while True:
            try:
                conn, _ = self._sock.accept()
            except OSError:
                return
            if self._stopping:
                conn.close()
                return
            with conn:
                try:
                    self._handle(conn)
                except OSError:
                    continue

    def _handle(self, conn: socket.socket) -> None:
        data = b""
        while not data.endswith(b"\n"):
            chunk = conn.recv(4096)
            if not chunk:
                break
            data += chunk
        self.commands.append(data.decode("utf-8"))
        payload, hold = self._replies.pop(0) if self._replies else (b"", False)
        conn.sendall(payload)
        if hold:
            self._release.wait(5)

    def close(self) -> None:
        self._stopping = True
        self._release.set()
        # Wake the blocking accept() so the thread can exit
        try:
            socket.create_connection((self.host, self.port), timeout=1).close()
        except OSError:
            pass
        self._thread.join(timeout=5)
        self._sock.close()


@pytest.fixture
def device():
    dev = FakeDevice()
    yield dev
    dev.close()


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port
