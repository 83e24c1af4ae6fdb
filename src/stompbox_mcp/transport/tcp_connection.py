"""TCP command channel to the Stompbox control port.

Each call to :meth:`CommandChannel.exchange` dials a fresh connection,
writes one command line and reads the response until a stop predicate
fires.  Nothing is pooled or reused: a wedged socket from one call can
never affect the next.

Usage::

    channel = CommandChannel("127.0.0.1", 24639)
    raw = channel.exchange("Dump Program\\r\\n", until_end_program)
"""

from __future__ import annotations

import logging
import socket
from contextlib import contextmanager
from typing import Iterator

from ..errors import ConnectFailed, IncompleteResponse, ResponseTooLarge, WriteFailed
from ..protocol.framing import StopPredicate, TerminationState

logger = logging.getLogger(__name__)

DIAL_TIMEOUT = 2.0
READ_TIMEOUT = 10.0
WRITE_TIMEOUT = 2.0
MAX_BYTES = 2_000_000
RECV_SIZE = 4096
ENCODING = "utf-8"


class CommandChannel:
    """Sends single commands over short-lived TCP connections.

    The instance only holds immutable connection parameters, so one channel
    may be shared between threads.  Overlapping calls are not serialized.
    """

    def __init__(
        self,
        host: str,
        port: int,
        dial_timeout: float = DIAL_TIMEOUT,
        read_timeout: float = READ_TIMEOUT,
        max_bytes: int = MAX_BYTES,
        write_timeout: float = WRITE_TIMEOUT,
    ) -> None:
        self._host = host
        self._port = port
        self._dial_timeout = dial_timeout
        self._read_timeout = read_timeout
        self._write_timeout = write_timeout
        self._max_bytes = max_bytes

    @property
    def address(self) -> tuple[str, int]:
        return (self._host, self._port)

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    @contextmanager
    def _connect(self) -> Iterator[socket.socket]:
        """Dial the device; the socket is closed on every exit path."""
        try:
            sock = socket.create_connection(self.address, timeout=self._dial_timeout)
        except OSError as e:
            raise ConnectFailed(
                f"cannot connect to {self._host}:{self._port}: {e}"
            ) from e
        try:
            yield sock
        finally:
            sock.close()

    def exchange(self, command: str, stop: StopPredicate) -> str:
        """Send *command* and read until ``stop(line, state)`` returns True.

        Args:
            command: A full command line, already terminated by CR-LF.
            stop: Called with every trimmed line and the exchange's
                :class:`TerminationState`.

        Returns:
            All response text received, including the terminating line.

        Raises:
            ConnectFailed: If the dial fails or times out.
            WriteFailed: If the command cannot be written.
            ResponseTooLarge: If the response grows past ``max_bytes``.
            IncompleteResponse: If the stream ends before ``stop`` matched.
        """
        verb = command.split(" ", 1)[0].strip()
        with self._connect() as sock:
            sock.settimeout(self._write_timeout)
            try:
                sock.sendall(command.encode(ENCODING))
            except OSError as e:
                raise WriteFailed(f"write failed: {e}") from e

            # The timeout applies to each recv, so a slow but live stream
            # is never cut off by a global deadline.
            sock.settimeout(self._read_timeout)

            buf = bytearray()
            state = TerminationState()
            for chunk in self._read_lines(sock):
                buf.extend(chunk)
                if len(buf) > self._max_bytes:
                    logger.warning(
                        "%s response exceeded %d bytes", verb, self._max_bytes
                    )
                    raise ResponseTooLarge(self._max_bytes, _decode(buf))

                line = _decode(chunk).strip()
                if line:
                    state.last_line = line
                if stop(line, state):
                    logger.debug("%s complete (%d bytes)", verb, len(buf))
                    return _decode(buf)

        logger.debug("%s incomplete, last line %r", verb, state.last_line)
        raise IncompleteResponse(state.last_line, _decode(buf))

    def _read_lines(self, sock: socket.socket) -> Iterator[bytes]:
        """Yield newline-terminated chunks from *sock*.

        A trailing fragment without newline is still yielded when the stream
        ends or a read fails.  A fragment that grows past ``max_bytes`` is
        yielded early so the caller can enforce the cap.
        """
        pending = bytearray()
        while True:
            idx = pending.find(b"\n")
            if idx >= 0:
                line = bytes(pending[: idx + 1])
                del pending[: idx + 1]
                yield line
                continue

            if len(pending) > self._max_bytes:
                yield bytes(pending)
                pending.clear()
                continue

            try:
                data = sock.recv(RECV_SIZE)
            except OSError as e:
                logger.debug("read from %s:%d ended: %s", self._host, self._port, e)
                data = b""

            if not data:
                if pending:
                    yield bytes(pending)
                return
            pending.extend(data)

    def __repr__(self) -> str:
        return f"CommandChannel(host={self._host!r}, port={self._port})"


def _decode(data: bytes | bytearray) -> str:
    return bytes(data).decode(ENCODING, errors="replace")
