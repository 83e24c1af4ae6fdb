"""Control-plane bridge and MCP server for the Stompbox audio-effects engine."""

from .client import StompboxClient
from .errors import (
    StompboxError,
    ConnectFailed,
    WriteFailed,
    ResponseTooLarge,
    IncompleteResponse,
    ProtocolError,
    MalformedDirective,
)

__version__ = "0.1.0"
