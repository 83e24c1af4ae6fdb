"""Exception hierarchy for device exchanges and dump parsing."""

from __future__ import annotations


class StompboxError(Exception):
    """Base exception for everything raised while talking to the device."""


class ConnectFailed(StompboxError, ConnectionError):
    """The TCP dial did not succeed within the dial timeout."""


class WriteFailed(StompboxError, ConnectionError):
    """The command line could not be fully written."""


class ResponseTooLarge(StompboxError):
    """The accumulated response exceeded the configured byte cap.

    Attributes:
        limit: The configured cap in bytes.
        partial: Text accumulated before reading stopped.
    """

    def __init__(self, limit: int, partial: str = "") -> None:
        self.limit = limit
        self.partial = partial
        super().__init__(f"response exceeded max size ({limit} bytes)")


class IncompleteResponse(StompboxError):
    """The stream ended before the response terminator was seen.

    Attributes:
        last_line: Last non-empty trimmed line received.
        partial: Text accumulated before the stream ended.
    """

    def __init__(self, last_line: str = "", partial: str = "") -> None:
        self.last_line = last_line
        self.partial = partial
        super().__init__(f"incomplete response (last line={last_line!r})")


class ProtocolError(StompboxError):
    """The device reported an ``Error ...`` line inside its response."""

    def __init__(self, line: str) -> None:
        self.line = line
        super().__init__(line)


class MalformedDirective(StompboxError, ValueError):
    """A program dump directive is missing required tokens."""

    def __init__(self, directive: str, line: str) -> None:
        self.directive = directive
        self.line = line
        super().__init__(f"malformed {directive}: {line!r}")
